"""Command-line options: parsing and deriving the learner's settings."""

from __future__ import annotations

import argparse
import logging
import math
import sys
from dataclasses import dataclass, field

from vwcore.loss import LabelBounds, LossFunction, get_loss_function
from vwcore.regressor import VERSION, RegressorConfig

logger = logging.getLogger(__name__)

DEFAULT_DECAY = 1.0
DEFAULT_PORT_PASSES = 100000
SIZE_MAX = 2**64 - 1
MAX_BITS = 29
SYSTEM_MAX_BITS = 30

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


class _Parser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting."""

    def error(self, message):
        raise ValueError(message)


def _size(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid size: {text!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid size: {text!r}")
    return value


def _char(text: str) -> int:
    data = text.encode()
    if len(data) != 1:
        raise argparse.ArgumentTypeError(f"expected a single character: {text!r}")
    return data[0]


def _boolean(text: str) -> bool:
    word = text.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean: {text!r}")


def _stride_for(count: int) -> int:
    return 1 << math.ceil(math.log(count * 2 + 1) / math.log(2))


@dataclass
class Options:
    """Every setting derived from the command line."""

    config: RegressorConfig = field(default_factory=RegressorConfig)
    bounds: LabelBounds = field(default_factory=LabelBounds)
    loss: LossFunction | None = None
    loss_name: str = "squared"
    loss_parameter: float = 0.5
    data: str = ""
    quiet: bool = False
    training: bool = True
    eta: float = 10.0
    eta_decay_rate: float = DEFAULT_DECAY
    power_t: float = 0.5
    numpasses: int = 1
    pass_length: int = SIZE_MAX
    active: bool = False
    active_simulation: bool = False
    active_c0: float = 8.0
    adaptive: bool = False
    exact_adaptive_norm: bool = False
    audit: bool = False
    backprop: bool = False
    corrective: bool = False
    delayed_global: bool = False
    bfgs: bool = False
    hessian_on: bool = False
    regularization: float = 1.0
    mem: int = 15
    l1_regularization: float = 0.0
    global_multiplier: float = 1.0
    cache: bool = False
    cache_files: list[str] = field(default_factory=list)
    compressed: bool = False
    daemon: bool = False
    num_children: int = 10
    pid_file: str | None = None
    hash_mode: str | None = None
    initial_regressors: list[str] = field(default_factory=list)
    final_regressor: str = ""
    text_regressor: str = ""
    regularizer_input: str = ""
    regularizer_output: str = ""
    regularizer_text: str = ""
    lda_alpha: float = 0.1
    minibatch: int = 1
    ring_size: int = 1 << 8
    span_server: str = ""
    multisource: int | None = None
    add_constant: bool = True
    noop: bool = False
    port: int | None = None
    predictions: str | None = None
    raw_predictions: str | None = None
    predictto: str | None = None
    sendto: list[str] = field(default_factory=list)
    sort_features: bool = False
    ignore: frozenset[int] = frozenset()
    unique_id: int = 0
    total: int = 1
    node: int = 0


def ends_with(full: str, ending: str) -> bool:
    """Whether ``full`` is strictly longer than ``ending`` and ends with it."""
    return len(full) > len(ending) and full.endswith(ending)


def next_pow2(x: int) -> int:
    """Smallest power of two not below ``x`` (1 for 0)."""
    return 1 << max(x - 1, 0).bit_length()


def build_parser() -> argparse.ArgumentParser:
    """The parser for every supported option."""
    p = _Parser(prog="vw", description="VW options", add_help=False, allow_abbrev=False)
    flag = "store_true"
    p.add_argument("--active_learning", action=flag, help="active learning mode")
    p.add_argument("--active_simulation", action=flag, help="active learning simulation mode")
    p.add_argument("--active_mellowness", type=float, default=8.0,
                   help="active learning mellowness parameter c_0. Default 8")
    p.add_argument("--adaptive", action=flag, help="use adaptive, individual learning rates.")
    p.add_argument("--exact_adaptive_norm", action=flag,
                   help="use a more expensive exact norm for adaptive learning rates.")
    p.add_argument("-a", "--audit", action=flag, help="print weights of features")
    p.add_argument("-b", "--bit_precision", type=_size, default=None,
                   help="number of bits in the feature table")
    p.add_argument("--backprop", action=flag, help="turn on delayed backprop")
    p.add_argument("--bfgs", action=flag, help="use bfgs optimization")
    p.add_argument("-c", "--cache", action=flag, help="Use a cache.  The default is <data>.cache")
    p.add_argument("--cache_file", action="append", default=None,
                   help="The location(s) of cache_file.")
    p.add_argument("--compressed", action=flag, help="use gzip format whenever appropriate")
    p.add_argument("--conjugate_gradient", action=flag,
                   help="use conjugate gradient based optimization")
    p.add_argument("--regularization", type=float, default=1.0, help="l_2 regularization for bfgs")
    p.add_argument("--corrective", action=flag, help="turn on corrective updates")
    p.add_argument("-d", "--data", default=None, help="Example Set")
    p.add_argument("--daemon", action=flag, help="persistent daemon mode on port 26542")
    p.add_argument("--num_children", type=_size, default=10,
                   help="number of children for persistent daemon mode")
    p.add_argument("--pid_file", default=None, help="Write pid file in persistent daemon mode")
    p.add_argument("--decay_learning_rate", type=float, default=DEFAULT_DECAY,
                   help="Set Decay factor for learning_rate between passes")
    p.add_argument("--input_feature_regularizer", default="",
                   help="Per feature regularization input file")
    p.add_argument("-f", "--final_regressor", default=None, help="Final regressor")
    p.add_argument("--readable_model", default=None, help="Output human-readable final regressor")
    p.add_argument("--global_multiplier", type=float, default=1.0, help="Global update multiplier")
    p.add_argument("--delayed_global", action=flag, help="Do delayed global updates")
    p.add_argument("--hash", default=None,
                   help="how to hash the features. Available options: strings, all")
    p.add_argument("-h", "--help", action=flag, help="Output Arguments")
    p.add_argument("--hessian_on", action=flag, help="use second derivative in line search")
    p.add_argument("--version", action=flag, help="Version information")
    p.add_argument("--ignore", action="append", type=_char, default=None,
                   help="ignore namespaces beginning with character <arg>")
    p.add_argument("--initial_weight", type=float, default=0.0,
                   help="Set all weights to an initial value of 1.")
    p.add_argument("-i", "--initial_regressor", action="append", default=None,
                   help="Initial regressor(s)")
    p.add_argument("--initial_pass_length", type=_size, default=SIZE_MAX,
                   help="initial number of examples per pass")
    p.add_argument("--initial_t", type=float, default=1.0, help="initial t value")
    p.add_argument("--l1", type=float, default=0.0, help="l_1 regularization level")
    p.add_argument("--lda", type=_size, default=None, help="Run lda with <int> topics")
    p.add_argument("--lda_alpha", type=float, default=0.1,
                   help="Prior on sparsity of per-document topic weights")
    p.add_argument("--lda_rho", type=float, default=0.1,
                   help="Prior on sparsity of topic distributions")
    p.add_argument("--lda_D", type=float, default=10000.0, help="Number of documents")
    p.add_argument("--minibatch", type=_size, default=1, help="Minibatch size, for LDA")
    p.add_argument("--span_server", default="",
                   help="Location of server for setting up spanning tree")
    p.add_argument("--min_prediction", type=float, default=None,
                   help="Smallest prediction to output")
    p.add_argument("--max_prediction", type=float, default=None,
                   help="Largest prediction to output")
    p.add_argument("--mem", type=int, default=15, help="memory in bfgs")
    p.add_argument("--multisource", type=_size, default=None,
                   help="multiple sources for daemon input")
    p.add_argument("--noconstant", action=flag, help="Don't add a constant feature")
    p.add_argument("--noop", action=flag, help="do no learning")
    p.add_argument("--output_feature_regularizer_binary", default="",
                   help="Per feature regularization output file")
    p.add_argument("--output_feature_regularizer_text", default="",
                   help="Per feature regularization output file, in text")
    p.add_argument("--port", type=_size, default=None, help="port to listen on")
    p.add_argument("--power_t", type=float, default=0.5, help="t power value")
    p.add_argument("--predictto", default=None, help="host to send predictions to")
    p.add_argument("-l", "--learning_rate", type=float, default=10.0, help="Set Learning Rate")
    p.add_argument("--passes", type=_size, default=1, help="Number of Training Passes")
    p.add_argument("-p", "--predictions", default=None, help="File to output predictions to")
    p.add_argument("-q", "--quadratic", action="append", default=None,
                   help="Create and use quadratic features")
    p.add_argument("--quiet", action=flag, help="Don't output diagnostics")
    p.add_argument("--rank", type=_size, default=0, help="rank for matrix factorization.")
    p.add_argument("--random_weights", type=_boolean, default=False,
                   help="make initial weights random")
    p.add_argument("-r", "--raw_predictions", default=None,
                   help="File to output unnormalized predictions to")
    p.add_argument("--save_per_pass", action=flag, help="Save the model after every pass over data")
    p.add_argument("--sendto", action="append", default=None, help="send example to <hosts>")
    p.add_argument("-t", "--testonly", action=flag, help="Ignore label information and just test")
    p.add_argument("--thread_bits", type=_size, default=0, help="log_2 threads")
    p.add_argument("--loss_function", default="squared",
                   help="Specify the loss function to be used, uses squared by default. "
                   "Currently available ones are squared, classic, hinge, logistic and quantile.")
    p.add_argument("--quantile_tau", type=float, default=0.5,
                   help="Parameter tau associated with Quantile loss. Defaults to 0.5")
    p.add_argument("--unique_id", type=_size, default=0, help="unique id used for cluster parallel")
    p.add_argument("--total", type=_size, default=1,
                   help="total number of nodes used in cluster parallel")
    p.add_argument("--node", type=_size, default=0, help="node number used for cluster parallel")
    p.add_argument("--sort_features", action=flag,
                   help="turn this on to disregard order in which features have been defined")
    p.add_argument("--ngram", type=_size, default=None, help="Generate N grams")
    p.add_argument("--skips", type=_size, default=None, help="Generate skips in N grams.")
    p.add_argument("data_positional", nargs="?", default=None, metavar="data",
                   help="Example Set")
    return p


def _check_pairs(pairs: list[str]) -> None:
    logger.info("creating quadratic features for pairs: %s", " ".join(pairs))
    for pair in pairs:
        if len(pair) > 2:
            logger.warning("warning, ignoring characters after the 2nd.")
        if len(pair) < 2:
            raise ValueError("error, quadratic features must involve two sets.")


def parse_args(argv=None) -> Options:
    """Parse command-line arguments (without the program name) into options.

    Asking for help (or giving no arguments) or for the version prints it and
    exits; invalid combinations raise ``ValueError``.
    """
    arguments = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    ns = parser.parse_args(arguments)

    if ns.data is not None and ns.data_positional is not None:
        raise ValueError("option '--data' cannot be specified more than once")

    if ns.help or not arguments:
        print(parser.format_help())
        raise SystemExit(0)

    opts = Options()
    c = opts.config
    c.initial_t = ns.initial_t
    c.thread_bits = ns.thread_bits
    c.partition_bits = ns.thread_bits
    c.initial_weight = ns.initial_weight
    c.lda = ns.lda if ns.lda is not None else 0
    c.lda_D = ns.lda_D
    c.lda_rho = ns.lda_rho
    c.rank = ns.rank
    c.random_weights = ns.random_weights

    opts.quiet = ns.quiet
    opts.power_t = ns.power_t
    opts.eta = ns.learning_rate
    opts.eta_decay_rate = ns.decay_learning_rate
    opts.numpasses = ns.passes
    opts.pass_length = ns.initial_pass_length
    opts.active_c0 = ns.active_mellowness
    opts.regularization = ns.regularization
    opts.mem = ns.mem
    opts.l1_regularization = ns.l1
    opts.global_multiplier = ns.global_multiplier
    opts.num_children = ns.num_children
    opts.lda_alpha = ns.lda_alpha
    opts.minibatch = ns.minibatch
    opts.span_server = ns.span_server
    opts.unique_id = ns.unique_id
    opts.total = ns.total
    opts.node = ns.node
    opts.regularizer_input = ns.input_feature_regularizer
    opts.regularizer_output = ns.output_feature_regularizer_binary
    opts.regularizer_text = ns.output_feature_regularizer_text
    opts.cache = ns.cache
    opts.cache_files = list(ns.cache_file or [])
    opts.pid_file = ns.pid_file
    opts.hash_mode = ns.hash
    opts.multisource = ns.multisource
    opts.port = ns.port
    opts.noop = ns.noop

    opts.active_simulation = ns.active_simulation
    opts.active = ns.active_learning and not opts.active_simulation

    if ns.adaptive or ns.exact_adaptive_norm:
        opts.adaptive = True
        c.adaptive = True
        opts.exact_adaptive_norm = ns.exact_adaptive_norm
        c.stride = 2
        opts.power_t = 0.0
        if c.thread_bits != 0:
            raise ValueError("adaptive code isn't correct with multiple learning cores")

    if ns.backprop:
        opts.backprop = True
        logger.info("enabling backprop updates")
    if ns.corrective:
        opts.corrective = True
        logger.info("enabling corrective updates")
    if ns.delayed_global:
        opts.delayed_global = True
        logger.info("enabling delayed_global updates")

    if ns.bfgs or ns.conjugate_gradient:
        opts.bfgs = True
        c.stride = 4
        if ns.hessian_on or opts.mem == 0:
            opts.hessian_on = True
        if not opts.quiet:
            method = "BFGS based optimization" if opts.mem > 0 else (
                "conjugate gradient optimization via BFGS")
            curvature = "with" if opts.hessian_on else "**without**"
            logger.info("enabling %s %s curvature calculation", method, curvature)
        if opts.numpasses < 2:
            raise ValueError("you must make at least 2 passes to use BFGS")

    if ns.version:
        print(VERSION)
        raise SystemExit(0)

    if ns.ngram is not None:
        c.ngram = ns.ngram
        logger.info("You have chosen to generate %d-grams", c.ngram)
        if ns.sort_features:
            raise ValueError("ngram is incompatible with sort_features.")
    if ns.skips is not None:
        c.skips = ns.skips
        if ns.ngram is None:
            raise ValueError("You can not skip unless ngram is > 1")
        logger.info("You have chosen to generate %d-skip-%d-grams", c.skips, c.ngram)
        if c.skips > 4:
            logger.warning("Generating these features might take quite some time")

    if ns.bit_precision is not None:
        c.default_bits = False
        c.num_bits = ns.bit_precision
        if c.num_bits > MAX_BITS:
            raise ValueError(
                "Only 29 or fewer bits allowed.  If this is a serious limit, speak up.")

    if ns.daemon or ns.pid_file is not None:
        opts.daemon = True
        # each child may process up to this many connections
        opts.numpasses = DEFAULT_PORT_PASSES

    opts.data = ns.data if ns.data is not None else (ns.data_positional or "")
    if ns.compressed or ends_with(opts.data, ".gz"):
        opts.compressed = True

    if ns.sort_features:
        opts.sort_features = True

    if c.num_bits > SYSTEM_MAX_BITS:
        raise ValueError("The system limits at 30 bits of precision!")

    if ns.quadratic:
        c.pairs = list(ns.quadratic)
        if not opts.quiet:
            _check_pairs(c.pairs)

    if ns.ignore:
        opts.ignore = frozenset(ns.ignore)
        if not opts.quiet:
            logger.info("ignoring namespaces beginning with: %s",
                        " ".join(chr(b) for b in ns.ignore))

    if c.rank > 0:
        c.stride = _stride_for(c.rank)
        c.random_weights = True

    if ns.noconstant:
        opts.add_constant = False

    if ns.lda is not None:
        opts.sort_features = True
        c.stride = _stride_for(c.lda)
        c.random_weights = True
        opts.add_constant = False
        if opts.eta > 1.0:
            logger.warning("your learning rate is too high, setting it to 1")
            opts.eta = min(opts.eta, 1.0)
    else:
        opts.eta *= c.initial_t ** opts.power_t

    opts.ring_size = max(opts.ring_size, next_pow2(opts.minibatch))

    opts.initial_regressors = list(ns.initial_regressor or [])
    if ns.final_regressor is not None:
        opts.final_regressor = ns.final_regressor
        if not opts.quiet:
            logger.info("final_regressor = %s", opts.final_regressor)
    if ns.readable_model is not None:
        opts.text_regressor = ns.readable_model

    c.save_per_pass = ns.save_per_pass

    if ns.min_prediction is not None:
        c.min_label = ns.min_prediction
    if ns.max_prediction is not None:
        c.max_label = ns.max_prediction
    adjustable = not (ns.min_prediction is not None or ns.max_prediction is not None
                      or ns.testonly)

    opts.loss_name = ns.loss_function
    opts.loss_parameter = ns.quantile_tau
    if c.rank != 0:
        opts.loss_name = "classic"
        logger.info("Forcing classic squared loss for matrix factorization")
    opts.bounds = LabelBounds(c.min_label, c.max_label, adjustable)
    opts.loss = get_loss_function(opts.loss_name, opts.loss_parameter, opts.bounds)
    c.min_label = opts.bounds.min_label
    c.max_label = opts.bounds.max_label

    if opts.eta_decay_rate != DEFAULT_DECAY and opts.numpasses == 1:
        logger.warning("Warning: decay_learning_rate has no effect when there is only one pass")
    last_factor = opts.eta_decay_rate ** opts.numpasses
    if last_factor < 0.0001:
        logger.warning(
            "Warning: the learning rate for the last pass is multiplied by: %g "
            "adjust --decay_learning_rate larger to avoid this.", last_factor)

    if not opts.quiet:
        logger.info("Num weight bits = %d", c.num_bits)
        logger.info("learning rate = %g", opts.eta)
        logger.info("initial_t = %g", c.initial_t)
        logger.info("power_t = %g", opts.power_t)
        if opts.numpasses > 1:
            logger.info("decay_learning_rate = %g", opts.eta_decay_rate)
        if c.rank > 0:
            logger.info("rank = %d", c.rank)
        if opts.regularization > 0 and opts.bfgs:
            logger.info("regularization = %g", opts.regularization)

    opts.predictions = ns.predictions
    opts.raw_predictions = ns.raw_predictions
    opts.audit = ns.audit
    opts.sendto = list(ns.sendto or [])

    if ns.testonly:
        logger.info("only testing")
        opts.training = False
        if c.lda > 0:
            opts.eta = 0.0
    else:
        opts.training = True
        logger.info("learning_rate set to %g", opts.eta)

    opts.predictto = ns.predictto
    return opts