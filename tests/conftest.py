import asyncio
import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from app.core.permissions import StudentContext, TeacherContext
from app.leaderboards.database_setup import create_leaderboard_indexes
from app.quizzes.database_setup import create_quiz_indexes


# ==================== IN-MEMORY DATABASE ====================
# Async stand-in for the handful of Motor calls the services make.

def _matches_condition(value, cond):
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$in":
                if value not in arg:
                    return False
                continue
            if op == "$ne":
                if value == arg:
                    return False
                continue
            if op == "$eq":
                if value != arg:
                    return False
                continue
            if value is None:
                return False
            if op == "$gt" and not value > arg:
                return False
            if op == "$gte" and not value >= arg:
                return False
            if op == "$lt" and not value < arg:
                return False
            if op == "$lte" and not value <= arg:
                return False
        return True
    return value == cond


def matches(doc, query):
    return all(_matches_condition(doc.get(key), cond) for key, cond in (query or {}).items())


def _sort_docs(docs, arg):
    for key, direction in reversed(list(arg)):
        docs.sort(key=lambda d: d.get(key), reverse=direction == -1)
    return docs


def _resolve(doc, expr):
    if isinstance(expr, str) and expr.startswith("$"):
        return doc.get(expr[1:])
    return expr


def _group(docs, arg):
    groups = {}
    for doc in docs:
        key = _resolve(doc, arg["_id"])
        out = groups.setdefault(key, {"_id": key})
        for field, acc in arg.items():
            if field == "_id":
                continue
            (op, expr), = acc.items()
            value = _resolve(doc, expr)
            if op == "$sum":
                out[field] = out.get(field, 0) + value
            elif op == "$max":
                out[field] = value if field not in out else max(out[field], value)
            elif op == "$min":
                out[field] = value if field not in out else min(out[field], value)
            elif op == "$first":
                out.setdefault(field, value)
    return list(groups.values())


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = None

    def sort(self, key_or_list, direction=None):
        arg = [(key_or_list, direction or 1)] if isinstance(key_or_list, str) else key_or_list
        _sort_docs(self._docs, arg)
        return self

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        if length:
            docs = docs[:length]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = []
        self.unique_keys = []

    async def create_index(self, keys, unique=False, **kwargs):
        fields = [keys] if isinstance(keys, str) else [k for k, _ in keys]
        if unique:
            self.unique_keys.append(tuple(fields))
        return "_".join(fields)

    def _check_unique(self, candidate, ignore=None):
        for fields in self.unique_keys:
            key = tuple(candidate.get(f) for f in fields)
            for doc in self.docs:
                if doc is ignore:
                    continue
                if tuple(doc.get(f) for f in fields) == key:
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name}")

    async def insert_one(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query=None, projection=None):
        for doc in self.docs:
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query=None, projection=None):
        return FakeCursor([d for d in self.docs if matches(d, query)])

    async def count_documents(self, query):
        return sum(1 for d in self.docs if matches(d, query))

    async def update_one(self, query, update, upsert=False):
        for doc in self.docs:
            if matches(doc, query):
                changed = dict(doc)
                changed.update(update.get("$set", {}))
                self._check_unique(changed, ignore=doc)
                modified = changed != doc
                doc.update(changed)
                return SimpleNamespace(matched_count=1, modified_count=int(modified), upserted_id=None)

        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

        new_doc = {
            k: v for k, v in query.items()
            if not (isinstance(v, dict) and any(op.startswith("$") for op in v))
        }
        new_doc.update(update.get("$setOnInsert", {}))
        new_doc.update(update.get("$set", {}))
        result = await self.insert_one(new_doc)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=result.inserted_id)

    async def delete_many(self, query):
        keep = [d for d in self.docs if not matches(d, query)]
        deleted = len(self.docs) - len(keep)
        self.docs = keep
        return SimpleNamespace(deleted_count=deleted)

    async def delete_one(self, query):
        for idx, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[idx]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def aggregate(self, pipeline):
        docs = [copy.deepcopy(d) for d in self.docs]
        for stage in pipeline:
            (name, arg), = stage.items()
            if name == "$match":
                docs = [d for d in docs if matches(d, arg)]
            elif name == "$group":
                docs = _group(docs, arg)
            elif name == "$sort":
                docs = _sort_docs(docs, arg.items())
            elif name == "$limit":
                docs = docs[:arg]
            elif name == "$skip":
                docs = docs[arg:]
            elif name == "$count":
                docs = [{arg: len(docs)}] if docs else []
            else:
                raise NotImplementedError(name)
        return FakeCursor(docs)


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def command(self, name):
        return {"ok": 1.0}


# ==================== FIXTURES ====================

PROFILES = {
    "T1": {"user_id": "T1", "name": "Ms. Rao", "role": "teacher", "class_ids": ["CLS_A"]},
    "T2": {"user_id": "T2", "name": "Mr. Boateng", "role": "teacher", "class_ids": ["CLS_B", "CLS_A"]},
    "T3": {"user_id": "T3", "name": "New Teacher", "role": "teacher", "class_ids": []},
    "S1": {"user_id": "S1", "name": "Asha", "role": "student", "assigned_class_id": "CLS_A", "assigned_teacher_id": "T1"},
    "S2": {"user_id": "S2", "name": "Ben", "role": "student", "assigned_class_id": "CLS_A", "assigned_teacher_id": "T1"},
    "S3": {"user_id": "S3", "name": "Chen", "role": "student", "assigned_class_id": "CLS_A", "assigned_teacher_id": "T1"},
    "S4": {"user_id": "S4", "name": "Dara", "role": "student", "assigned_class_id": "CLS_B", "assigned_teacher_id": "T2"},
    "S5": {"user_id": "S5", "name": "Eli", "role": "student"},
}


@pytest.fixture
def db():
    database = FakeDatabase()

    async def _setup():
        await create_leaderboard_indexes(database)
        await create_quiz_indexes(database)
        for profile in PROFILES.values():
            await database.users_profile.insert_one(profile)

    asyncio.run(_setup())
    return database


@pytest.fixture
def student():
    def _make(user_id):
        return StudentContext(user_id, PROFILES[user_id])
    return _make


@pytest.fixture
def teacher():
    def _make(user_id):
        return TeacherContext(user_id, PROFILES[user_id])
    return _make


@pytest.fixture
def sample_quiz():
    return {
        "quiz_id": "QUIZ_ALPHA",
        "teacher_id": "T1",
        "class_id": "CLS_A",
        "title": "Logic basics",
        "questions": [
            {"text": "1 AND 0?", "options": ["0", "1"], "correct_index": 0},
            {"text": "1 OR 0?", "options": ["0", "1"], "correct_index": 1},
            {"text": "NOT 1?", "options": ["0", "1", "X"], "correct_index": 0},
        ],
        "per_question_seconds": 30,
        "max_attempts_per_student": 2,
        "published": True,
    }
