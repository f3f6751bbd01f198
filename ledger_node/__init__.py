"""ledger_node — minimal account ledger chaincode with a local execution host."""

__version__ = "0.1.0"
