import os

# Keep dict/set hash-iteration stable and prefer UTC everywhere.
os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")
# Tests pick their backend explicitly; never touch a developer's ledger file.
os.environ["VOTING_LEDGER_STORE"] = "memory"
os.environ.pop("VOTING_LEDGER_SEED_POLICY", None)
