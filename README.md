# vwcore

The building blocks of an online linear learner with hashed features, in plain Python.
It needs nothing outside the standard library.

## What is in it

- `vwcore.example`: `LabelData`, `Feature`, `AuditData`, `Example` and `PartialExample`.
  An `Example` groups its features by namespace, from 0 to 255.
- `vwcore.primitives`: `tokenize` splits text on a delimiter and drops empty pieces.
  `float_of`, `int_of` and `ulong_of` read a leading number the way C's conversion
  functions do. `float_of` rounds to single precision.
- `vwcore.simple_label`: the simple label, made of a value, an importance weight and an
  initial prediction. `default_label`, `parse_label`, `pack_label`, `unpack_label`,
  `label_weight` and `label_initial` work on it. The binary form is three
  little-endian floats.
- `vwcore.loss`: `SquaredLoss`, `ClassicSquaredLoss`, `HingeLoss`, `LogisticLoss` and
  `QuantileLoss` all share the `LossFunction` interface:
  - `get_loss`
  - `get_update`
  - `get_reverting_weight`
  - `get_square_grad`
  - `first_derivative`
  - `second_derivative`

  `get_loss_function(name, parameter, bounds)` picks a loss by name: `"squared"`,
  `"classic"`, `"hinge"`, `"logistic"`, or `"quantile"` / `"pinball"` / `"absolute"`.
  For quantile loss the parameter is tau. Any other name raises `ValueError`. When
  `bounds.adjustable` is true, choosing `"logistic"` widens the `LabelBounds` to
  [-100, 100].
- `vwcore.sparse_dense`: works between sparse features and a dense weight table:
  - dot products: `sd_add` and `sd_offset_add`
  - the same with truncated (L1) weights: `sd_truncadd`, `sd_offset_truncadd`,
    `real_weight` and `sign`
  - in-place updates: `sd_offset_update`
  - quadratic crossing: `quadratic`
  - crossed predictions: `one_of_quad_predict`, `one_pf_quad_predict`,
    `one_pf_quad_predict_trunc`, `offset_quad_predict` and `single_quad_weight`
- `vwcore.unique_sort`: `unique_features` and `unique_sort_features` sort features by
  weight index and drop duplicates.
- `vwcore.parse_example`: `ExampleParser.parse` turns a line of the form
  `label weight initial tag|namespace feature:value ...` into an `Example`.
  `hash_string` and `feature_value` are the helpers it uses.
- `vwcore.regressor`: `RegressorConfig` and `Regressor` hold the weight table.
  A `Regressor` can be created with `Regressor.initialize` and written with
  `dump`, either in the binary format or as text. `read_vector` reads a binary
  model back, and `save_per_pass` and `finalize` cover the usual outputs.
  `parse_regressor_args` either builds a table from initial model files or starts
  a fresh one.
- `vwcore.multisource`: `Prediction` and `GlobalPrediction` are the wire records that
  cooperating learners exchange. `really_read`, `blocking_get_prediction`,
  `blocking_get_global_prediction`, `send_prediction` and `send_global_prediction`
  send and receive them over a blocking socket.
- `vwcore.network`: `split_host` splits `name[:port]`, with 26542 as the default port.
  `open_socket` connects and sends a one-byte greeting.
- `vwcore.options`: `build_parser` and `parse_args(argv)` read the full option set into
  an `Options` object. The object holds the derived `RegressorConfig`, the label
  bounds and the chosen loss. `ends_with` and `next_pow2` are the helpers it uses.

## Usage

Choosing and using a loss function:

```python
from vwcore.loss import LabelBounds, get_loss_function

bounds = LabelBounds()
loss = get_loss_function("logistic", 0.0, bounds)
print(loss.get_loss(0.3, 1.0))
print(loss.first_derivative(0.3, 1.0))
```

Splitting text the way the example parser does:

```python
from vwcore.primitives import tokenize

tokenize("|", "1 0.5 tag|a x:2 y|b z")   # ['1 0.5 tag', 'a x:2 y', 'b z']
```

Parsing an example line needs a byte-string hash that takes a seed. The package does
not ship one, so you supply it:

```python
import zlib
from vwcore.parse_example import ExampleParser

def crc_hash(data: bytes, seed: int) -> int:
    return zlib.crc32(data, seed & 0xFFFFFFFF)

parser = ExampleParser(uniform_hash=crc_hash, hash_base=0, mask=(1 << 18) - 1)
example = parser.parse("1 1.0 first|animals cat dog:2 |colors red")
print(example.ld.label, example.tag, example.num_features())
```

With `hash_mode="strings"`, which is the default, a feature whose name is a plain
number hashes to that number plus the seed. With `hash_mode="all"`, every name goes
through the hash you supplied.

Writing a model and reading it back:

```python
from vwcore.regressor import Regressor, RegressorConfig

model = Regressor.initialize(RegressorConfig(num_bits=4, initial_weight=0.5))
model.dump("model.bin")

loaded = Regressor(RegressorConfig())
loaded.read_vector("model.bin")
```

Reading the options a run would use:

```python
from vwcore.options import parse_args

options = parse_args(["--passes", "3", "--loss_function", "hinge", "train.txt"])
print(options.numpasses, options.data, type(options.loss).__name__)
```

`parse_args` raises `ValueError` for bad options or bad combinations of them. If it is
called with no arguments, or with `--help` or `--version`, it prints the help or the
version and raises `SystemExit`.

## What it does not do

This is a library of parts, not a learner. It installs no command. It does not:

- run training or prediction passes
- read data files or write cache files
- produce prediction output
- run a daemon
- send examples to other hosts

`parse_args` records settings such as `predictions`, `sendto` and `daemon`, but no code
in the package acts on them. The package also provides no hash function for feature
names; `ExampleParser` uses whatever hash you pass in.