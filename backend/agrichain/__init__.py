"""Agricultural supply-chain ledger: harvest lots, certification and DAO governance."""
