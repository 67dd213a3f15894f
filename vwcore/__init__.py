"""Parts of an online linear learner: example parsing, labels, losses, sparse arithmetic, model files and options."""

__version__ = "0.1.0"