# codeloop: Exception types raised out of the session core. Tool-argument problems and validation issues are never raised; they travel back to the model as tool output.


class CodeloopError(Exception):
    """Base class for codeloop failures (configuration, setup)."""


class ModelInvocationError(CodeloopError, RuntimeError):
    """The model call failed; the session is aborted and nothing partial is returned."""
