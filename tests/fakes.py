"""In-memory stand-in for the parts of the supabase Client the service uses."""

import re
import uuid
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError

_OR_TERM_RE = re.compile(r'(\w+)\.eq\.(?:"((?:[^"\\]|\\.)*)"|([^,]*))')


def _parse_or(expr: str):
    terms = []
    for match in _OR_TERM_RE.finditer(expr):
        column, quoted, bare = match.groups()
        value = re.sub(r"\\(.)", r"\1", quoted) if quoted is not None else bare
        terms.append((column, value))
    return terms


def rls_error(table: str = "profiles") -> APIError:
    return APIError({
        "message": f'new row violates row-level security policy for table "{table}"',
        "code": "42501",
        "hint": None,
        "details": None,
    })


class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table_name = table
        self.action = "select"
        self.payload: Any = None
        self.filters = []
        self.columns: Optional[List[str]] = None
        self._limit: Optional[int] = None
        self._range = None

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return self.client.tables.setdefault(self.table_name, [])

    def select(self, columns: str = "*"):
        if columns != "*":
            self.columns = [c.strip() for c in columns.split(",")]
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def or_(self, expr: str):
        terms = _parse_or(expr)
        self.filters.append(lambda row: any(str(row.get(c)) == v for c, v in terms))
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def is_(self, column, value):
        assert value == "null"
        self.filters.append(lambda row: row.get(column) is None)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    def _matching(self):
        return [r for r in self.rows if all(f(r) for f in self.filters)]

    def _project(self, row):
        if self.columns is None:
            return dict(row)
        return {c: row.get(c) for c in self.columns}

    def execute(self):
        if self.table_name in self.client.fail_tables:
            raise self.client.fail_tables[self.table_name]
        if self.action == "insert":
            created = self._insert()
            if self.table_name in self.client.minimal_inserts:
                return SimpleNamespace(data=[])
            return SimpleNamespace(data=created)
        if self.action == "update":
            matched = self._matching()
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])
        rows = self._matching()
        if self._range is not None:
            rows = rows[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            rows = rows[:self._limit]
        return SimpleNamespace(data=[self._project(r) for r in rows])

    def _insert(self):
        if self.table_name in self.client.insert_errors:
            raise self.client.insert_errors[self.table_name]
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        created = []
        for item in payload:
            for column in ("username", "email"):
                if item.get(column) is not None and any(r.get(column) == item[column] for r in self.rows):
                    raise APIError({
                        "message": f'duplicate key value violates unique constraint "{self.table_name}_{column}_key"',
                        "code": "23505",
                        "hint": None,
                        "details": None,
                    })
            row = {"id": self.client.next_id(), "auth_id": None, "password": None, "role": "customer"}
            row.update({k: v for k, v in item.items() if v is not None})
            self.rows.append(row)
            created.append(dict(row))
        return created


class FakeAdmin:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth

    def create_user(self, attributes: Dict[str, Any]):
        if self.auth.create_error is not None:
            raise self.auth.create_error
        email = attributes["email"]
        if email in self.auth.users:
            raise Exception("A user with this email address has already been registered")
        user = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            user_metadata=attributes.get("user_metadata", {}),
            email_confirmed=attributes.get("email_confirm", False),
        )
        self.auth.users[email] = (user, attributes["password"])
        return SimpleNamespace(user=user)


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, Any] = {}
        self.create_error: Optional[Exception] = None
        self.admin = FakeAdmin(self)

    def sign_in_with_password(self, credentials: Dict[str, str]):
        entry = self.users.get(credentials["email"])
        if entry is None or entry[1] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = entry[0]
        session = {"access_token": f"token-{user.id}", "token_type": "bearer"}
        return SimpleNamespace(user=user, session=session)


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.auth = FakeAuth()
        self.insert_errors: Dict[str, Exception] = {}
        self.fail_tables: Dict[str, Exception] = {}
        # Inserts into these tables succeed but return no rows (Prefer: return=minimal)
        self.minimal_inserts: set = set()
        self._id = 0

    def next_id(self) -> int:
        self._id += 1
        return self._id

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)
