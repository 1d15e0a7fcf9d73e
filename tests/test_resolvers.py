import asyncio
import itertools

import pytest

from crudql.collection import Collection, ListOptions
from crudql.errors import RecordNotFoundError
from crudql.resolvers import clamp_page_size, normalize_list_args
from crudql.schema import build_schema
from tests.fixtures import RecordingCollection, RecordingFactory
from tests.schema import GADGET_SDL, WIDGET_SDL

SEED = {'Widget': {'w1': {'id': 'w1', 'name': 'Anchor', 'size': 10, 'color': 'red'}}}


def _clock():
    return itertools.count(1000).__next__


@pytest.mark.parametrize('value, expected', [
    (None, None),
    (0, None),
    (-3, None),
    (20, 20),
    (100, 100),
    (500, 100),
])
def test_clamp_page_size(value, expected):
    assert clamp_page_size(value, 100) == expected


def test_normalize_list_args():
    options = normalize_list_args(
        {'first': 500, 'last': 0, 'after': 'c1', 'cursor': 'legacy', 'limit': 250, 'order': [{'field': 'name'}]},
        100,
    )
    assert options == ListOptions(
        order=[{'field': 'name'}], after='c1', first=100, last=None, cursor='legacy', limit=100,
    )
    assert options.to_dict()['filter'] is None


@pytest.mark.asyncio
async def test_find_and_list_delegate_to_collection():
    factory = RecordingFactory(SEED)
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory)
    res = await crud.execute(
        '{ widget { find(id: "w1") { id name } list(first: 500, filter: [{field: "color", op: EQ, value: "red"}]) '
        '{ edges { node { id } } pageInfo { hasNextPage } } } }'
    )
    assert res.errors is None, res.errors
    assert res.data['widget']['find'] == {'id': 'w1', 'name': 'Anchor'}
    assert res.data['widget']['list']['edges'] == [{'node': {'id': 'w1'}}]

    collection = factory.collections['Widget']
    assert isinstance(collection, Collection)
    (_, options), = collection.called('list')
    assert options.first == 100
    assert options.filter == [{'field': 'color', 'op': 'EQ', 'value': 'red'}]


@pytest.mark.asyncio
async def test_update_of_missing_record_fails_without_writing():
    factory = RecordingFactory(SEED)
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory)
    res = await crud.execute('mutation { widget { update(id: "nope", data: {name: "x"}) } }')
    assert res.errors is not None
    assert isinstance(res.errors[0].original_error, RecordNotFoundError)
    assert 'Document with id "nope" in collection "Widget" does not exist for update' in res.errors[0].message
    assert res.data == {'widget': {'update': None}}
    assert factory.collections['Widget'].called('update') == []


@pytest.mark.asyncio
async def test_failed_operation_does_not_affect_siblings():
    factory = RecordingFactory(SEED)
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory)
    res = await crud.execute(
        'mutation { widget { bad: update(id: "nope", data: {}) good: update(id: "w1", data: {size: 11}) } }'
    )
    assert len(res.errors) == 1
    assert res.data['widget'] == {'bad': None, 'good': True}
    assert factory.collections['Widget'].records['w1']['size'] == 11


@pytest.mark.asyncio
async def test_create_stamps_both_timestamps_with_one_instant():
    factory = RecordingFactory()
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory, timestamps=True, clock=_clock())
    res = await crud.execute('mutation { widget { create(data: {name: "Bolt"}) } }')
    assert res.errors is None, res.errors
    assert res.data == {'widget': {'create': 'widget-1'}}
    (_, record_id, data), = factory.collections['Widget'].called('create')
    assert record_id is None
    assert data == {'name': 'Bolt', 'created': 1000, 'modified': 1000}


@pytest.mark.asyncio
async def test_create_passes_explicit_id():
    factory = RecordingFactory()
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory)
    res = await crud.execute('mutation { widget { create(id: "w9", data: {name: "Bolt"}) } }')
    assert res.data == {'widget': {'create': 'w9'}}
    assert factory.collections['Widget'].called('create') == [('create', 'w9', {'name': 'Bolt'})]


@pytest.mark.asyncio
async def test_update_stamps_modified_only():
    factory = RecordingFactory(SEED)
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory, timestamps=True, clock=_clock())
    res = await crud.execute('mutation { widget { update(id: "w1", data: {color: "blue"}) } }')
    assert res.errors is None, res.errors
    collection = factory.collections['Widget']
    assert collection.called('find') == [('find', 'w1')]
    assert collection.called('update') == [('update', 'w1', {'color': 'blue', 'modified': 1000})]


@pytest.mark.asyncio
async def test_upsert_checks_existence_only_with_timestamps():
    factory = RecordingFactory(SEED)
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory)
    res = await crud.execute('mutation { widget { upsert(id: "w2", data: {name: "Cog"}) } }')
    assert res.errors is None, res.errors
    collection = factory.collections['Widget']
    assert collection.called('find') == []
    assert collection.called('upsert') == [('upsert', 'w2', {'name': 'Cog'})]


@pytest.mark.asyncio
async def test_upsert_with_timestamps_sets_created_for_new_records():
    factory = RecordingFactory(SEED)
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory, timestamps=True, clock=_clock())
    res = await crud.execute(
        'mutation { widget { old: upsert(id: "w1", data: {name: "A"}) new: upsert(id: "w2", data: {name: "B"}) } }'
    )
    assert res.errors is None, res.errors
    upserts = dict((c[1], c[2]) for c in factory.collections['Widget'].called('upsert'))
    assert 'created' not in upserts['w1']
    assert upserts['w1']['modified'] >= 1000
    assert upserts['w2']['created'] == upserts['w2']['modified']


@pytest.mark.asyncio
async def test_delete_has_no_existence_check():
    factory = RecordingFactory(SEED)
    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory)
    res = await crud.execute('mutation { widget { a: delete(id: "w1") b: delete(id: "w1") } }')
    assert res.errors is None, res.errors
    assert res.data['widget'] == {'a': True, 'b': False}
    assert factory.collections['Widget'].called('find') == []


@pytest.mark.asyncio
async def test_factory_called_once_per_root_type_at_build_time():
    factory = RecordingFactory()
    context = {'tenant': 't1'}
    crud = await build_schema([WIDGET_SDL, GADGET_SDL], ['Widget', 'Gadget'], data=factory, context=context)
    assert sorted(c['name'] for c in factory.calls) == ['Gadget', 'Widget']
    for call in factory.calls:
        assert call['id'] == 'id'
        assert call['schema'] is crud.schema
        assert call['type'] is crud.schema.get_type(call['name'])
        assert call['context'] is context

    await crud.execute('{ widget { find(id: "x") { id } } gadget { find(id: "y") { id } } }')
    assert len(factory.calls) == 2


@pytest.mark.asyncio
async def test_async_factory_and_sync_collection_methods():
    class SyncCollection:
        def find(self, id):
            return {'id': id, 'name': 'sync'}

        def list(self, options):
            return {'edges': [], 'pageInfo': {'hasNextPage': False, 'hasPreviousPage': False}}

        def create(self, id, data):
            return 'new'

        def update(self, id, data):
            return True

        def upsert(self, id, data):
            return True

        def delete(self, id):
            return True

    async def factory(**kwargs):
        return SyncCollection()

    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory)
    res = await crud.execute(
        '{ widget { find(id: "w5") { id name } list { edges { cursor } pageInfo { hasPreviousPage } } } }'
    )
    assert res.errors is None, res.errors
    assert res.data['widget']['find'] == {'id': 'w5', 'name': 'sync'}
    assert res.data['widget']['list'] == {'edges': [], 'pageInfo': {'hasPreviousPage': False}}


@pytest.mark.asyncio
async def test_request_scoped_factory_receives_each_request_context():
    calls = []

    def factory(*, id, name, type, schema, context):
        calls.append(context)
        return RecordingCollection(name, {'w1': {'id': 'w1', 'name': context['user']}})

    crud = await build_schema(WIDGET_SDL, ['Widget'], data=factory, request_scoped=True)
    assert calls == []

    first = await crud.execute('{ widget { find(id: "w1") { name } } }', context_value={'user': 'ann'})
    second = await crud.execute('{ widget { find(id: "w1") { name } } }', context_value={'user': 'bob'})
    assert first.data['widget']['find'] == {'name': 'ann'}
    assert second.data['widget']['find'] == {'name': 'bob'}
    assert calls == [{'user': 'ann'}, {'user': 'bob'}]


@pytest.mark.asyncio
async def test_failed_acquisition_waits_for_other_root_types():
    finished = []

    async def factory(*, id, name, type, schema, context):
        if name == 'Gadget':
            raise ValueError("no gadget store")
        await asyncio.sleep(0.01)
        finished.append(name)
        return RecordingCollection(name)

    with pytest.raises(ValueError):
        await build_schema([WIDGET_SDL, GADGET_SDL], ['Widget', 'Gadget'], data=factory)
    assert finished == ['Widget']
