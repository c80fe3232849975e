import unittest

from mongopipe import Stage


class StagesTest(unittest.TestCase):
    """ Test Stage constructors """

    def test_kind(self):
        self.assertEqual(Stage.kind({'$match': {}}), '$match')
        self.assertTrue(Stage.is_a({'$sort': {'a': 1}}, Stage.SORT))
        self.assertFalse(Stage.is_a({'$sort': {'a': 1}}, Stage.MATCH))

        for not_a_stage in ({}, {'$match': {}, '$sort': {}}, [('$match', {})], None):
            with self.assertRaises(ValueError):
                Stage.kind(not_a_stage)

    def test_constructors(self):
        # Every constructor makes a known kind of stage
        for stage in [
            Stage.match({'a': 1}),
            Stage.sort({'a': 1}),
            Stage.skip(1),
            Stage.limit(1),
            Stage.project({'a': 1}),
            Stage.lookup('roles', 'role', '_id', 'role'),
            Stage.unwind('role'),
            Stage.set({'a': 1}),
            Stage.unset('a'),
            Stage.add_fields({'a': 1}),
            Stage.facet(data=[]),
            Stage.count('total'),
        ]:
            self.assertIn(Stage.kind(stage), Stage.KINDS)

    def test_mongodb_grammar(self):
        self.assertEqual(Stage.lookup('roles', 'role_id', 'id', 'role'),
                         {'$lookup': {'from': 'roles', 'localField': 'role_id', 'foreignField': 'id', 'as': 'role'}})
        self.assertEqual(Stage.unwind('role'),
                         {'$unwind': {'path': '$role', 'preserveNullAndEmptyArrays': True}})
        self.assertEqual(Stage.unwind('role', preserve_null_and_empty_arrays=False),
                         {'$unwind': {'path': '$role', 'preserveNullAndEmptyArrays': False}})
        self.assertEqual(Stage.facet(data=[Stage.limit(1)], total=[Stage.count('count')]),
                         {'$facet': {'data': [{'$limit': 1}], 'total': [{'$count': 'count'}]}})
