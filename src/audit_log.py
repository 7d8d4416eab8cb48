import json
import time
import os

DEFAULT_LOG = "audit.jsonl"

def log_path() -> str:
    return os.getenv("AUDIT_LOG", DEFAULT_LOG)

def _encode(value):
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    raise TypeError(f"cannot audit-log {type(value).__name__}")

def append(entry: dict, path: str = None):
    entry = dict(entry, ts_ns=time.time_ns())
    # Serialize with minimal separators to be byte-dense and JSONL format
    entry_line = json.dumps(entry, separators=(",", ":"), default=_encode) + "\n"

    with open(path or log_path(), "a", buffering=1) as f:
        f.write(entry_line)
        f.flush()
        os.fsync(f.fileno())

def read(path: str = None) -> list:
    path = path or log_path()
    if not os.path.exists(path):
        return []
    with open(path) as f:
        return [json.loads(line) for line in f if line.strip()]

if __name__ == "__main__":
    # Self-test
    append({"event": "init", "message": "Audit log initialized"})
