"""feeflow - fee automation orchestrator and weighted staking rewards engine."""

__version__ = "0.1.0"
