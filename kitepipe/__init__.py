"""kitepipe: build Buildkite pipelines in Python and upload them."""

__version__ = "0.1.0"
