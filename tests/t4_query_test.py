import unittest
from copy import copy

from . import models
from .util import FakeExecutor, FailingExecutor

from mongopipe import PipelineQuery, PipelineQuerySettingsDict, Page
from mongopipe.exc import InvalidQueryError, DisabledError, JoinDepthError, RelationNotFoundError


def query(executor=None, entity='User', **settings) -> PipelineQuery:
    """ Make a PipelineQuery for the blog schema """
    return PipelineQuery(entity, executor or FakeExecutor(), models.schema, **settings)


class QueryBuilderTest(unittest.TestCase):
    """ Test how PipelineQuery builds pipelines """

    maxDiff = None

    def test_empty(self):
        self.assertEqual(query().pipeline(), [])

    def test_call_order(self):
        """ Accumulated stages go in call order; projection, skip, limit go last """
        q = query() \
            .limit(10) \
            .select('name role') \
            .skip(20) \
            .where('age', '>=', 18) \
            .join('role') \
            .order_by('-age') \
            .where({'role.title': 'admin'})

        self.assertEqual(q.pipeline(), [
            {'$match': {'age': {'$gte': 18}}},
            {'$lookup': {'from': 'roles', 'localField': 'role', 'foreignField': '_id', 'as': 'role'}},
            {'$unwind': {'path': '$role', 'preserveNullAndEmptyArrays': True}},
            {'$sort': {'age': -1}},
            {'$match': {'role.title': 'admin'}},
            {'$project': {'name': 1, 'role': 1}},
            {'$skip': 20},
            {'$limit': 10},
        ])

    def test_where(self):
        q = query().where({'a': 1, 'b': 2})
        self.assertEqual(q.pipeline(), [{'$match': {'a': 1, 'b': 2}}])

        # Separate calls are never merged
        q = query().where('a', 1).where('b', '!=', 2)
        self.assertEqual(q.pipeline(), [
            {'$match': {'a': 1}},
            {'$match': {'b': {'$ne': 2}}},
        ])

        with self.assertRaises(InvalidQueryError) as e:
            query().where('a', 'like', 1)
        self.assertIn('Unsupported operator: like', str(e.exception))

    def test_select(self):
        q = query().select('name email').select('-password -token')
        self.assertEqual(q.pipeline(), [{'$project': {'password': 0, 'token': 0}}])

    def test_order_by(self):
        # Adjacent calls are merged
        q = query().order_by('name -age email')
        self.assertEqual(q.pipeline(), [{'$sort': {'name': 1, 'age': -1, 'email': 1}}])

        q = query().order_by('name').order_by({'age': 'desc'}).order_by('name', -1)
        self.assertEqual(q.pipeline(), [{'$sort': {'name': -1, 'age': -1}}])

        # A where() in between prevents merging
        q = query().order_by('name').where('age', '>', 18).order_by('-age')
        self.assertEqual(q.pipeline(), [
            {'$sort': {'name': 1}},
            {'$match': {'age': {'$gt': 18}}},
            {'$sort': {'age': -1}},
        ])

    def test_skip_limit(self):
        # Skip before limit, regardless of call order
        self.assertEqual(query().skip(5).limit(10).pipeline(), [{'$skip': 5}, {'$limit': 10}])
        self.assertEqual(query().limit(10).skip(5).pipeline(), [{'$skip': 5}, {'$limit': 10}])

        # Last one wins; strings are converted
        self.assertEqual(query().limit(10).limit('50').pipeline(), [{'$limit': 50}])
        self.assertEqual(query().skip(10).skip(None).pipeline(), [])

        with self.assertRaises(InvalidQueryError):
            query().skip(-1)
        with self.assertRaises(InvalidQueryError):
            query().limit('lots')

    def test_join(self):
        # Twice is the same as once
        self.assertEqual(query().join('role').join('role').pipeline(),
                         query().join('role').pipeline())

        # Nested
        stages = query().join('posts.category').pipeline()
        self.assertEqual([list(s)[0] for s in stages], ['$lookup', '$lookup', '$set', '$unset'])

        # Too deep
        with self.assertRaises(JoinDepthError) as e:
            query().join('posts.category.parent')
        self.assertIn('2', str(e.exception))

    def test_failed_join_changes_nothing(self):
        q = query().where('a', 1)
        with self.assertRaises(RelationNotFoundError):
            q.join('posts.NOPE')
        self.assertEqual(q.pipeline(), [{'$match': {'a': 1}}])

        # The parent was not marked as joined either
        self.assertEqual(len(q.join('posts').pipeline()), 2)

    def test_add_fields(self):
        q = query(entity='Product') \
            .add_fields({'inventoryValue': {'$multiply': ['$price', '$stock']}}) \
            .where('inventoryValue', '>', 10000)
        self.assertEqual(q.pipeline(), [
            {'$addFields': {'inventoryValue': {'$multiply': ['$price', '$stock']}}},
            {'$match': {'inventoryValue': {'$gt': 10000}}},
        ])

        for value in (None, [], ['a']):
            with self.assertRaises(InvalidQueryError):
                query().add_fields(value)

    def test_copy(self):
        q = query().where('a', 1).order_by('a').join('role').limit(5)
        q2 = copy(q).order_by('-b').join('role').join('posts').select('a').limit(10)

        # Original is intact
        self.assertEqual(q.pipeline(), [
            {'$match': {'a': 1}},
            {'$sort': {'a': 1}},
            {'$lookup': {'from': 'roles', 'localField': 'role', 'foreignField': '_id', 'as': 'role'}},
            {'$unwind': {'path': '$role', 'preserveNullAndEmptyArrays': True}},
            {'$limit': 5},
        ])

        # The copy has both
        self.assertEqual(q2.pipeline(), q.pipeline()[:-1] + [
            {'$sort': {'b': -1}},
            {'$lookup': {'from': 'posts', 'localField': 'posts', 'foreignField': '_id', 'as': 'posts'}},
            {'$project': {'a': 1}},
            {'$limit': 10},
        ])

        # Handlers are bound to their own query
        self.assertIs(q2.handler_join.query, q2)
        self.assertIs(q.handler_join.query, q)

    def test_copy_does_not_share_sort(self):
        q = query().order_by('a')
        q2 = copy(q).order_by('b')
        self.assertEqual(q.pipeline(), [{'$sort': {'a': 1}}])
        self.assertEqual(q2.pipeline(), [{'$sort': {'a': 1, 'b': 1}}])

    def test_settings(self):
        # Both ways
        self.assertEqual(query(max_join_depth=1).handler_join.max_join_depth, 1)
        q = PipelineQuery('User', FakeExecutor(), models.schema, PipelineQuerySettingsDict(max_join_depth=1))
        self.assertEqual(q.handler_join.max_join_depth, 1)

        with self.assertRaises(JoinDepthError) as e:
            q.join('posts.category')
        self.assertIn('1', str(e.exception))

        # Invalid
        with self.assertRaises(ValueError) as e:
            query(max_join_dept=3)
        self.assertIn('max_join_dept', str(e.exception))
        with self.assertRaises(ValueError):
            query(max_join_depth=0)
        with self.assertRaises(ValueError):
            query(max_join_depth=True)
        with self.assertRaises(ValueError):
            PipelineQuery('', FakeExecutor(), models.schema)

    def test_disabled(self):
        q = query(join_enabled=False, sort_enabled=False, limit_enabled=False)

        # Enabled
        q.where('a', 1).select('a')

        # Disabled
        with self.assertRaises(DisabledError) as e:
            q.join('role')
        self.assertIn('join() is disabled for "User"', str(e.exception))
        with self.assertRaises(DisabledError):
            q.order_by('a')
        with self.assertRaises(DisabledError) as e:
            q.skip(1)
        self.assertIn('skip()', str(e.exception))

        # DisabledError is an InvalidQueryError
        with self.assertRaises(InvalidQueryError):
            q.limit(1)

    def test_max_items(self):
        q = query(max_items=100)
        self.assertEqual(q.pipeline(), [{'$limit': 100}])
        self.assertEqual(q.limit(500).pipeline(), [{'$limit': 100}])

    def test_sa_models(self):
        q = models.User.pipeline_query(FakeExecutor())
        self.assertEqual(q.entity, 'User')

        q.join('role').join('posts.category')
        self.assertEqual(q.pipeline()[:4], [
            {'$lookup': {'from': 'roles', 'localField': 'role_id', 'foreignField': 'id', 'as': 'role'}},
            {'$unwind': {'path': '$role', 'preserveNullAndEmptyArrays': True}},
            {'$lookup': {'from': 'posts', 'localField': 'id', 'foreignField': 'user_id', 'as': 'posts'}},
            {'$lookup': {'from': 'categories', 'localField': 'posts.category_id', 'foreignField': 'id',
                         'as': 'posts__category__joined'}},
        ])

        # Settings
        q = models.User.pipeline_query(FakeExecutor(), max_join_depth=1)
        with self.assertRaises(JoinDepthError):
            q.join('posts.category')

    def test_repr(self):
        self.assertEqual(repr(query().limit(1)), "PipelineQuery('User', pipeline=[{'$limit': 1}])")


class QueryExecutionTest(unittest.IsolatedAsyncioTestCase):
    """ Test PipelineQuery terminal methods """

    maxDiff = None

    async def test_get(self):
        rows = [{'name': 'a'}, {'name': 'b'}]
        executor = FakeExecutor(rows)
        q = query(executor).where('age', '>', 18).limit(2)

        with self.assertLogs('mongopipe.query', 'DEBUG'):
            self.assertEqual(await q.get(), rows)

        self.assertEqual(executor.calls, [
            ('User', [{'$match': {'age': {'$gt': 18}}}, {'$limit': 2}]),
        ])

    async def test_reusable(self):
        executor = FakeExecutor()
        q = query(executor).where('a', 1).order_by('a').skip(10).limit(5)

        await q.get()
        await q.first()
        await q.count()
        await q.paginate(2, 3)
        await q.get()

        # Terminal methods change nothing
        self.assertEqual(len(executor.calls), 5)
        self.assertEqual(executor.pipelines[0], executor.pipelines[-1])
        self.assertEqual(q.pipeline(), executor.pipelines[0])

    async def test_first(self):
        executor = FakeExecutor([{'name': 'a'}], [])
        q = query(executor).where('a', 1).select('name').skip(3).limit(10)

        self.assertEqual(await q.first(), {'name': 'a'})
        self.assertEqual(executor.last_pipeline, [
            {'$match': {'a': 1}},
            {'$project': {'name': 1}},
            {'$skip': 3},
            {'$limit': 1},
        ])

        # Nothing
        self.assertIsNone(await q.first())

        # The stored limit is intact
        self.assertEqual(q.handler_limit.limit, 10)

    async def test_count(self):
        executor = FakeExecutor([{'total': 27}], [])
        q = query(executor).where('a', 1).join('role').select('name').order_by('name').skip(5).limit(10)

        self.assertEqual(await q.count(), 27)
        # Projection, skip and limit are left out; filters and joins remain
        self.assertEqual(executor.last_pipeline, [
            {'$match': {'a': 1}},
            {'$lookup': {'from': 'roles', 'localField': 'role', 'foreignField': '_id', 'as': 'role'}},
            {'$unwind': {'path': '$role', 'preserveNullAndEmptyArrays': True}},
            {'$sort': {'name': 1}},
            {'$count': 'total'},
        ])

        # No rows: zero
        self.assertEqual(await q.count(), 0)

        # Disabled
        with self.assertRaises(DisabledError):
            await query(executor, count_enabled=False).count()

    async def test_paginate(self):
        executor = FakeExecutor([{'data': [{'name': 'a'}], 'total': [{'count': 27}]}])
        q = query(executor).where({'active': True}).select('name').skip(100).limit(1000)

        page = await q.paginate(2, 10)
        self.assertEqual(page, Page(data=[{'name': 'a'}], page=2, per_page=10, total=27, total_pages=3))

        self.assertEqual(executor.last_pipeline, [
            {'$facet': {
                'data': [
                    {'$match': {'active': True}},
                    {'$project': {'name': 1}},
                    {'$skip': 10},
                    {'$limit': 10},
                ],
                'total': [
                    {'$match': {'active': True}},
                    {'$count': 'count'},
                ],
            }},
        ])

    async def test_paginate_first_page(self):
        executor = FakeExecutor()
        await query(executor).paginate(1, 5)
        self.assertEqual(executor.last_pipeline[0]['$facet']['data'], [{'$skip': 0}, {'$limit': 5}])

    async def test_paginate_total_pages(self):
        for page in (1, 2, 3):
            executor = FakeExecutor([{'data': [], 'total': [{'count': 27}]}])
            result = await query(executor).paginate(page, 10)
            self.assertEqual((result.total, result.total_pages), (27, 3))

    async def test_paginate_empty(self):
        # $facet with nothing to count
        executor = FakeExecutor([{'data': [], 'total': []}])
        page = await query(executor).paginate(1, 10)
        self.assertEqual(page.as_dict(), {'data': [], 'page': 1, 'perPage': 10, 'total': 0, 'totalPages': 1})

        # No rows at all
        page = await query(FakeExecutor()).paginate(1, 10)
        self.assertEqual(page, Page([], 1, 10, 0, 1))

    async def test_paginate_coercion(self):
        for args, expected in [
            (('2', '10'), (2, 10)),
            ((2.7, 10.9), (2, 10)),
            ((0, 0), (1, 1)),
            ((-5, -1), (1, 1)),
            ((), (1, 10)),
        ]:
            page = await query().paginate(*args)
            self.assertEqual((page.page, page.per_page), expected)

        # Not a number: fails before anything runs
        executor = FakeExecutor()
        for args in (('x', 10), (1, None), (float('nan'), 10), (1, float('inf'))):
            with self.assertRaises(InvalidQueryError):
                await query(executor).paginate(*args)
        self.assertEqual(executor.calls, [])

    async def test_paginate_max_items(self):
        executor = FakeExecutor()
        page = await query(executor, max_items=50).paginate(1, 100)
        self.assertEqual(page.per_page, 50)
        self.assertEqual(executor.last_pipeline[0]['$facet']['data'], [{'$skip': 0}, {'$limit': 50}])

    async def test_executor_errors_propagate(self):
        error = RuntimeError('connection lost')
        executor = FailingExecutor(error)
        q = query(executor)

        for terminal in (q.get, q.first, q.count, q.paginate):
            with self.assertRaises(RuntimeError) as e:
                await terminal()
            self.assertIs(e.exception, error)

        # Exactly one call each, no retries
        self.assertEqual(executor.calls, 4)

    async def test_plain_function_executor(self):
        calls = []

        async def execute(entity, pipeline):
            calls.append((entity, pipeline))
            return [{'total': 3}]

        q = PipelineQuery('User', execute, models.schema)
        self.assertEqual(await q.count(), 3)
        self.assertEqual(calls, [('User', [{'$count': 'total'}])])
