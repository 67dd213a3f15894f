import pytest

from vwcore.loss import ClassicSquaredLoss, QuantileLoss, SquaredLoss
from vwcore.options import build_parser, ends_with, next_pow2, parse_args
from vwcore.regressor import VERSION


def parse(*args):
    return parse_args(["--quiet", *args])


def test_ends_with():
    assert ends_with("data.gz", ".gz") is True
    assert ends_with(".gz", ".gz") is False
    assert ends_with("data.txt", ".gz") is False


def test_next_pow2_invariants():
    assert next_pow2(0) == 1
    for x in range(1, 200):
        p = next_pow2(x)
        assert p & (p - 1) == 0
        assert p >= x
        assert p // 2 < x


def test_build_parser_reads_learning_rate():
    ns = build_parser().parse_args(["-l", "0.5"])
    assert ns.learning_rate == 0.5


def test_defaults():
    opts = parse()
    assert opts.eta == 10.0
    assert opts.numpasses == 1
    assert opts.config.num_bits == 18
    assert opts.config.default_bits is True
    assert opts.ring_size == 256
    assert isinstance(opts.loss, SquaredLoss)
    assert opts.training is True
    assert opts.add_constant is True


def test_no_arguments_prints_help(capsys):
    with pytest.raises(SystemExit):
        parse_args([])
    assert "--loss_function" in capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit):
        parse("--version")
    assert VERSION in capsys.readouterr().out


def test_power_t_zero_keeps_learning_rate():
    opts = parse("-l", "2", "--power_t", "0", "--initial_t", "9")
    assert opts.eta == 2.0


def test_adaptive_sets_stride_and_power():
    opts = parse("--adaptive", "--initial_t", "9", "-l", "3")
    assert opts.config.stride == 2
    assert opts.power_t == 0.0
    assert opts.eta == 3.0


def test_adaptive_with_threads_fails():
    with pytest.raises(ValueError):
        parse("--adaptive", "--thread_bits", "1")


def test_bfgs_needs_two_passes():
    with pytest.raises(ValueError):
        parse("--bfgs")


def test_bfgs_settings():
    opts = parse("--bfgs", "--passes", "2")
    assert opts.bfgs is True
    assert opts.config.stride == 4
    assert opts.hessian_on is False
    assert parse("--bfgs", "--passes", "2", "--mem", "0").hessian_on is True


def test_skips_without_ngram_fails():
    with pytest.raises(ValueError):
        parse("--skips", "2")


def test_ngram_with_sort_features_fails():
    with pytest.raises(ValueError):
        parse("--ngram", "2", "--sort_features")


def test_ngram_and_skips_stored():
    opts = parse("--ngram", "3", "--skips", "1")
    assert (opts.config.ngram, opts.config.skips) == (3, 1)


def test_bit_precision():
    opts = parse("-b", "20")
    assert opts.config.num_bits == 20
    assert opts.config.default_bits is False
    with pytest.raises(ValueError):
        parse("-b", "30")


def test_daemon_sets_passes():
    opts = parse("--daemon")
    assert opts.daemon is True
    assert opts.numpasses == 100000


def test_data_positional_and_compression():
    opts = parse("train.gz")
    assert opts.data == "train.gz"
    assert opts.compressed is True
    assert parse("-d", "train.txt").compressed is False


def test_data_given_twice_fails():
    with pytest.raises(ValueError):
        parse("-d", "a.txt", "b.txt")


def test_quadratic_pairs():
    opts = parse_args(["-q", "ab", "-q", "cd"])
    assert opts.config.pairs == ["ab", "cd"]


def test_short_quadratic_pair_fails_unless_quiet():
    with pytest.raises(ValueError):
        parse_args(["-q", "a"])
    assert parse("-q", "a").config.pairs == ["a"]


def test_ignore():
    opts = parse("--ignore", "a", "--ignore", "b")
    assert opts.ignore == {ord("a"), ord("b")}
    with pytest.raises(ValueError):
        parse("--ignore", "ab")


def test_rank_forces_classic_loss():
    opts = parse("--rank", "3")
    stride = opts.config.stride
    assert stride & (stride - 1) == 0
    assert 2 * 3 + 1 <= stride < 2 * (2 * 3 + 1)
    assert opts.config.random_weights is True
    assert isinstance(opts.loss, ClassicSquaredLoss)
    assert opts.loss_name == "classic"


def test_lda_settings():
    opts = parse("--lda", "2")
    assert opts.sort_features is True
    assert opts.add_constant is False
    assert opts.config.random_weights is True
    assert opts.eta == 1.0
    assert opts.config.stride >= 2 * 2 + 1


def test_lda_testonly_zeroes_learning_rate():
    opts = parse("--lda", "2", "-t")
    assert opts.training is False
    assert opts.eta == 0.0


def test_logistic_widens_bounds():
    opts = parse("--loss_function", "logistic")
    assert opts.bounds.min_label == -100.0
    assert opts.config.max_label == 100.0


def test_logistic_keeps_explicit_bounds():
    opts = parse("--loss_function", "logistic", "--min_prediction", "-2")
    assert opts.config.min_label == -2.0
    assert opts.bounds.max_label == 1.0


def test_quantile_tau():
    opts = parse("--loss_function", "quantile", "--quantile_tau", "0.3")
    assert isinstance(opts.loss, QuantileLoss)
    assert opts.loss.tau == 0.3


def test_unknown_loss_fails():
    with pytest.raises(ValueError):
        parse("--loss_function", "bogus")


def test_minibatch_ring_size():
    opts = parse("--minibatch", "1000")
    assert opts.ring_size == next_pow2(1000)
    assert opts.ring_size >= 1000


def test_random_weights_boolean():
    assert parse("--random_weights", "true").config.random_weights is True
    assert parse("--random_weights", "0").config.random_weights is False
    with pytest.raises(ValueError):
        parse("--random_weights", "maybe")


def test_unknown_and_abbreviated_options_fail():
    with pytest.raises(ValueError):
        parse("--no_such_option")
    with pytest.raises(ValueError):
        parse("--learning", "1")


def test_regressor_file_options():
    opts = parse("-i", "m1", "-i", "m2", "-f", "final", "--readable_model", "text")
    assert opts.initial_regressors == ["m1", "m2"]
    assert opts.final_regressor == "final"
    assert opts.text_regressor == "text"


def test_output_and_network_options():
    opts = parse("-p", "preds", "-r", "raw", "--predictto", "host:1", "--sendto", "h1")
    assert opts.predictions == "preds"
    assert opts.raw_predictions == "raw"
    assert opts.predictto == "host:1"
    assert opts.sendto == ["h1"]