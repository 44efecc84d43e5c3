"""
In-memory stand-ins for the Supabase client, Gladia and Gemini.

FakeSupabase understands the subset of the postgrest query builder used by
the services: select/insert/update/delete, eq/neq/in_/is_/gte/gt/lte/lt,
contains, or_ (ilike and comparisons, nested and()), JSON paths
(metadata->>key), order, limit, offset, single/maybe_single.
Each execute() runs under one lock so a filtered update is atomic, like a
single UPDATE ... WHERE statement.
"""

import copy
import threading
import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional


class FakeResponse:
    def __init__(self, data):
        self.data = data


def _field(row: Dict[str, Any], column: str):
    """Column value; understands postgrest JSON paths like metadata->>job_id."""
    if "->" not in column:
        return row.get(column)
    parts = column.replace("->>", "->").split("->")
    value: Any = row.get(parts[0])
    for key in parts[1:]:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    if "->>" in column and value is not None:
        return str(value)
    return value


def _comparable(value):
    return str(value) if value is not None else None


def _split_top_level(expression: str) -> List[str]:
    """Split on commas outside parentheses and double quotes."""
    parts, depth, quoted, current = [], 0, False, ""
    for ch in expression:
        if ch == '"':
            quoted = not quoted
        elif not quoted and ch == "(":
            depth += 1
        elif not quoted and ch == ")":
            depth -= 1
        if ch == "," and depth == 0 and not quoted:
            parts.append(current)
            current = ""
        else:
            current += ch
    parts.append(current)
    return parts


_OPERATORS = {
    "eq": lambda a, b: a == b,
    "neq": lambda a, b: a != b,
    "lt": lambda a, b: a < b,
    "lte": lambda a, b: a <= b,
    "gt": lambda a, b: a > b,
    "gte": lambda a, b: a >= b,
}


def _matches_clause(row: Dict[str, Any], clause: str) -> bool:
    for group, combine in (("and(", all), ("or(", any)):
        if clause.startswith(group) and clause.endswith(")"):
            inner = clause[len(group):-1]
            return combine(_matches_clause(row, part) for part in _split_top_level(inner))
    column, operator, pattern = clause.split(".", 2)
    if pattern.startswith('"') and pattern.endswith('"'):
        pattern = pattern[1:-1]
    value = _field(row, column)
    if operator == "ilike":
        needle = pattern.strip("%").lower()
        return isinstance(value, str) and needle in value.lower()
    if operator not in _OPERATORS:
        raise NotImplementedError(f"or_ operator {operator}")
    return value is not None and _OPERATORS[operator](_comparable(value), pattern)


def _matches_or(row: Dict[str, Any], expression: str) -> bool:
    return any(_matches_clause(row, clause) for clause in _split_top_level(expression))


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.payload = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders = []
        self._limit = None
        self._offset = 0
        self._single = None

    # actions
    def select(self, columns: str = "*"):
        self.action = "select"
        return self

    def insert(self, data):
        self.action = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.action = "update"
        self.payload = data
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters
    def eq(self, column, value):
        self.filters.append(lambda r: _field(r, column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda r: _field(r, column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda r: _field(r, column) in values)
        return self

    def is_(self, column, value):
        if value in ("null", None):
            self.filters.append(lambda r: _field(r, column) is None)
        else:
            self.filters.append(lambda r: _field(r, column) is value)
        return self

    def _compare(self, column, value, op):
        bound = _comparable(value)
        self.filters.append(
            lambda r: _field(r, column) is not None and op(_comparable(_field(r, column)), bound)
        )
        return self

    def gte(self, column, value):
        return self._compare(column, value, lambda a, b: a >= b)

    def gt(self, column, value):
        return self._compare(column, value, lambda a, b: a > b)

    def lte(self, column, value):
        return self._compare(column, value, lambda a, b: a <= b)

    def lt(self, column, value):
        return self._compare(column, value, lambda a, b: a < b)

    def contains(self, column, values):
        self.filters.append(lambda r: all(v in (_field(r, column) or []) for v in values))
        return self

    def or_(self, expression):
        self.filters.append(lambda r: _matches_or(r, expression))
        return self

    # modifiers
    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def offset(self, count):
        self._offset = count
        return self

    def single(self):
        self._single = "single"
        return self

    def maybe_single(self):
        self._single = "maybe"
        return self

    def _matching(self, rows):
        return [r for r in rows if all(f(r) for f in self.filters)]

    def execute(self):
        with self.db.lock:
            self.db.calls.append((self.table_name, self.action))
            if self.table_name in self.db.failing_tables:
                raise Exception(f"{self.table_name} unavailable")
            rows = self.db.tables[self.table_name]

            if self.action == "insert":
                items = self.payload if isinstance(self.payload, list) else [self.payload]
                inserted = []
                for item in items:
                    row = copy.deepcopy(item)
                    row.setdefault("id", str(uuid.uuid4()))
                    row.setdefault("created_at", self.db.now())
                    rows.append(row)
                    inserted.append(copy.deepcopy(row))
                return FakeResponse(inserted)

            matched = self._matching(rows)

            if self.action == "update":
                for row in matched:
                    row.update(copy.deepcopy(self.payload))
                return FakeResponse([copy.deepcopy(r) for r in matched])

            if self.action == "delete":
                for row in matched:
                    rows.remove(row)
                return FakeResponse([copy.deepcopy(r) for r in matched])

            for column, desc in reversed(self.orders):
                present = [r for r in matched if r.get(column) is not None]
                missing = [r for r in matched if r.get(column) is None]
                present.sort(key=lambda r: _comparable(r.get(column)), reverse=desc)
                matched = present + missing
            matched = matched[self._offset:]
            if self._limit is not None:
                matched = matched[:self._limit]
            result = [copy.deepcopy(r) for r in matched]

            if self._single == "maybe":
                return FakeResponse(result[0]) if result else None
            if self._single == "single":
                if len(result) != 1:
                    raise Exception("JSON object requested, multiple (or no) rows returned")
                return FakeResponse(result[0])
            return FakeResponse(result)


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise Exception(f"function {self.name} does not exist")
        return FakeResponse(handler(self.params))


class FakeBucket:
    def __init__(self, db: "FakeSupabase", bucket: str):
        self.db = db
        self.bucket = bucket

    def create_signed_url(self, path, expires_in):
        if (self.bucket, path) not in self.db.objects:
            raise Exception("Object not found")
        return {"signedURL": f"https://fake.supabase.co/storage/v1/object/sign/{self.bucket}/{path}?token=secret"}

    def get_public_url(self, path):
        return f"https://fake.supabase.co/storage/v1/object/public/{self.bucket}/{path}"


class FakeStorage:
    def __init__(self, db: "FakeSupabase"):
        self.db = db

    def from_(self, bucket):
        return FakeBucket(self.db, bucket)


class FakeAuth:
    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.calls = 0

    def get_user(self, jwt=None):
        self.calls += 1
        user = self.db.users.get(jwt)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)


class FakeSupabase:
    def __init__(self):
        self.lock = threading.RLock()
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.users: Dict[str, SimpleNamespace] = {}
        self.objects = set()
        self.failing_tables = set()
        self.calls = []
        self.rpc_calls = []
        self.feature_usage: Dict[tuple, int] = defaultdict(int)
        self.rpc_handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "check_feature_limit": self._check_feature_limit,
            "record_feature_usage": self._record_feature_usage,
        }
        self.auth = FakeAuth(self)
        self.storage = FakeStorage(self)
        self._tick = 0
        self._base = datetime.utcnow()

    def now(self) -> str:
        # Strictly increasing timestamps keep ordering deterministic
        self._tick += 1
        return (self._base + timedelta(milliseconds=self._tick)).isoformat()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    def _check_feature_limit(self, params):
        used = self.feature_usage[(params["p_user_id"], params["p_feature_name"])]
        return [{"current_usage": used}]

    def _record_feature_usage(self, params):
        self.feature_usage[(params["p_user_id"], params["p_feature_name"])] += params["p_usage_count"]
        return None

    # seeding helpers
    def add_user(self, token: str, user_id: str, email: str, tier: Optional[str] = "foundation"):
        self.users[token] = SimpleNamespace(
            id=user_id,
            email=email,
            user_metadata={},
            app_metadata={},
            created_at="2026-01-01T00:00:00",
            updated_at=None,
        )
        self.tables["profiles"].append({
            "id": user_id,
            "email": email,
            "display_name": email.split("@")[0],
            "subscription_tier": tier,
            "is_active": True,
            "timezone": "UTC",
        })

    def add_row(self, table: str, **row) -> Dict[str, Any]:
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self.now())
        self.tables[table].append(row)
        return row

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        for row in self.tables[table]:
            if row.get("id") == row_id:
                return row
        return None


class FakeGladia:
    """Records submissions; get_status replays queued payloads per job (last one repeats)."""

    def __init__(self):
        self.started = []
        self.status_calls = []
        self.payloads: Dict[str, List[Dict[str, Any]]] = {}
        self.start_error: Optional[Exception] = None
        self.status_error: Optional[Exception] = None
        self._next = 0

    def start_transcription(self, audio_url, options=None):
        if self.start_error:
            raise self.start_error
        self._next += 1
        job_id = f"job-{self._next}"
        self.started.append((job_id, audio_url))
        return job_id

    def queue(self, job_id: str, *payloads):
        self.payloads.setdefault(job_id, []).extend(payloads)

    def get_status(self, job_id):
        self.status_calls.append(job_id)
        if self.status_error:
            raise self.status_error
        queued = self.payloads.get(job_id)
        if not queued:
            return {"id": job_id, "status": "queued"}
        if len(queued) > 1:
            return queued.pop(0)
        return queued[0]


class FakeGemini:
    """Returns queued replies in order; empty string once they run out."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []
        self.error: Optional[Exception] = None

    def generate(self, prompt, model=None, temperature=0.5, max_output_tokens=512):
        self.calls.append({
            "prompt": prompt,
            "model": model,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        })
        if self.error:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


def done_payload(text: str = "He said I was overreacting again.", language: str = "en", duration: float = 42.0):
    """A Gladia v2 'done' status payload."""
    return {
        "id": "job",
        "status": "done",
        "result": {
            "metadata": {"audio_duration": duration},
            "transcription": {
                "full_transcript": text,
                "languages": [language],
                "utterances": [
                    {
                        "text": text,
                        "confidence": 0.9,
                        "language": language,
                        "words": [{"word": "He", "start": 0.0, "end": 0.2, "confidence": 0.95}],
                    }
                ],
            },
        },
    }
