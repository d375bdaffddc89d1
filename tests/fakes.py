"""
In-memory stand-in for the parts of the Supabase client the services use:
table query builders (select/insert/upsert/update/delete with eq/in_/order/
limit/offset), storage buckets and auth.
"""
import copy
import uuid
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data
        self.count = len(data)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._order: List[tuple] = []
        self._limit: Optional[int] = None
        self._offset = 0

    # operations
    def select(self, *columns, **kwargs):
        self._op = "select"
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def upsert(self, payload, **kwargs):
        self._op = "upsert"
        self._payload = payload
        return self

    def update(self, payload):
        self._op = "update"
        self._payload = payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    # filters and modifiers
    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self._order.append((column, desc))
        return self

    def limit(self, size):
        self._limit = size
        return self

    def offset(self, size):
        self._offset = size
        return self

    def _matches(self, row):
        return all(f(row) for f in self._filters)

    def execute(self) -> FakeResponse:
        self._db.calls.append((self._table, self._op))
        if self._table in self._db.failing_tables:
            raise Exception(f"permission denied for table {self._table}")
        hook = self._db.hooks.get((self._table, self._op))
        if hook is not None:
            hook(self)
        rows = self._db.tables.setdefault(self._table, [])

        if self._op in ("insert", "upsert"):
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for payload in payloads:
                row = copy.deepcopy(payload)
                row.setdefault("id", str(uuid.uuid4()))
                existing = next((r for r in rows if r["id"] == row["id"]), None)
                if existing is not None:
                    if self._op == "insert":
                        raise Exception('duplicate key value violates unique constraint (23505)')
                    existing.update(row)
                    inserted.append(copy.deepcopy(existing))
                else:
                    rows.append(row)
                    inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        matched = [r for r in rows if self._matches(r)]

        if self._op == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            return FakeResponse(copy.deepcopy(matched))

        if self._op == "delete":
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(matched))

        result = list(matched)
        for column, desc in reversed(self._order):
            result.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        result = result[self._offset:]
        if self._limit is not None:
            result = result[:self._limit]
        return FakeResponse(copy.deepcopy(result))


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self._storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        self._storage.objects[(self.name, path)] = (file, file_options or {})
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://fake.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self._storage.objects.pop((self.name, path), None)
        return [{"name": p} for p in paths]


class FakeStorage:
    def __init__(self):
        self.objects: Dict[tuple, Any] = {}

    def from_(self, bucket):
        return FakeBucket(self, bucket)


def make_auth_user(user_id: str, email: str, display_name: Optional[str] = None):
    metadata = {"display_name": display_name} if display_name else {}
    return SimpleNamespace(
        id=user_id,
        email=email,
        user_metadata=metadata,
        app_metadata={},
        created_at="2025-01-01T00:00:00+00:00",
    )


class FakeAuth:
    """Tokens are "token-<user id>"; passwords are kept in plain text"""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.signed_out = 0

    def add_user(self, user_id: str, email: str, password: str = "secret123", display_name: Optional[str] = None):
        self.users[email] = {
            "user": make_auth_user(user_id, email, display_name),
            "password": password,
        }
        return "token-" + user_id

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.users:
            raise Exception("User already registered")
        display_name = credentials.get("options", {}).get("data", {}).get("display_name")
        user_id = str(uuid.uuid4())
        self.add_user(user_id, email, credentials["password"], display_name)
        return SimpleNamespace(user=self.users[email]["user"], session=None)

    def sign_in_with_password(self, credentials):
        entry = self.users.get(credentials["email"])
        if entry is None or entry["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        session = SimpleNamespace(access_token="token-" + entry["user"].id)
        return SimpleNamespace(user=entry["user"], session=session)

    def get_user(self, jwt=None):
        for entry in self.users.values():
            if jwt == "token-" + entry["user"].id:
                return SimpleNamespace(user=entry["user"])
        raise Exception("invalid JWT: unable to parse or verify signature")

    def sign_out(self):
        self.signed_out += 1


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.hooks: Dict[tuple, Callable[[FakeQuery], None]] = {}
        self.failing_tables: set = set()
        self.calls: List[tuple] = []
        self.storage = FakeStorage()
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(name, [])

    def seed(self, name: str, row: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        self.rows(name).append(row)
        return row

    def find(self, name: str, row_id: str) -> Optional[Dict[str, Any]]:
        return next((r for r in self.rows(name) if r["id"] == row_id), None)

    def on_next(self, table: str, op: str, callback: Callable[[FakeQuery], None]) -> None:
        """Run callback once, right before the next `op` on `table` is applied"""
        def hook(query):
            del self.hooks[(table, op)]
            callback(query)
        self.hooks[(table, op)] = hook
