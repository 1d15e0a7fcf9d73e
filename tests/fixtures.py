"""Shared fixtures: a recording in-memory collection and sample database rows."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Gadget, Widget


class RecordingCollection:
    """In-memory collection that records every call it receives."""

    def __init__(self, name, records=None):
        self.name = name
        self.records = {k: dict(v) for k, v in (records or {}).items()}
        self.calls = []

    def called(self, method):
        return [c for c in self.calls if c[0] == method]

    async def find(self, id):
        self.calls.append(('find', id))
        return self.records.get(id)

    async def list(self, options):
        self.calls.append(('list', options))
        nodes = list(self.records.values())
        return {
            'edges': [{'node': node, 'cursor': str(i)} for i, node in enumerate(nodes)],
            'pageInfo': {'hasNextPage': False, 'hasPreviousPage': False},
        }

    async def create(self, id, data):
        self.calls.append(('create', id, data))
        new_id = id if id is not None else f"{self.name.lower()}-{len(self.records) + 1}"
        self.records[new_id] = {'id': new_id, **data}
        return new_id

    async def update(self, id, data):
        self.calls.append(('update', id, data))
        self.records[id].update(data)
        return True

    async def upsert(self, id, data):
        self.calls.append(('upsert', id, data))
        self.records.setdefault(id, {'id': id}).update(data)
        return True

    async def delete(self, id):
        self.calls.append(('delete', id))
        return self.records.pop(id, None) is not None


class RecordingFactory:
    """Data factory handing out one RecordingCollection per root type name."""

    def __init__(self, records=None):
        self.seed = records or {}
        self.collections = {}
        self.calls = []

    def __call__(self, *, id, name, type, schema, context):
        self.calls.append({'id': id, 'name': name, 'type': type, 'schema': schema, 'context': context})
        if name not in self.collections:
            self.collections[name] = RecordingCollection(name, self.seed.get(name))
        return self.collections[name]


@pytest.fixture(scope="function")
def recording_factory():
    return RecordingFactory()


async def create_sample_widgets(session: AsyncSession):
    """Create and commit the sample widgets and gadgets used across SQL tests."""
    widgets = [
        Widget(id="w1", name="Anchor", size=10, color="red"),
        Widget(id="w2", name="Bolt", size=25, color="blue"),
        Widget(id="w3", name="Cog", size=40, color="red"),
        Widget(id="w4", name="Dowel", size=55, color="green"),
    ]
    gadgets = [
        Gadget(label="Lamp", serial_number="L-1"),
    ]
    session.add_all(widgets + gadgets)
    await session.flush()
    await session.commit()
    return widgets


@pytest.fixture(scope="function")
async def sample_widgets(db_session: AsyncSession):
    return await create_sample_widgets(db_session)


@pytest.fixture(scope="function")
async def populated_db(db_session: AsyncSession, sample_widgets):
    return {'widgets': sample_widgets}
