"""Chain collaborators."""

from feeflow.chain.rest import RestChainExecutor

__all__ = ["RestChainExecutor"]
