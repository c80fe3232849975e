import math
from collections import namedtuple
from typing import List

from ..exc import InvalidQueryError
from ..stages import Stage


class Page(namedtuple('Page', ('data', 'page', 'per_page', 'total', 'total_pages'))):
    """ One page of results, and the numbers to navigate through the other pages

        * data: list of rows
        * page: page number, starting with 1
        * per_page: the number of rows per page
        * total: the total number of rows on all pages
        * total_pages: the number of pages; at least 1, even when there are no rows at all
    """
    __slots__ = ()

    def as_dict(self) -> dict:
        """ Get the page as a JSON-friendly dict with camelCase keys """
        return {
            'data': self.data,
            'page': self.page,
            'perPage': self.per_page,
            'total': self.total,
            'totalPages': self.total_pages,
        }


class PaginatedPipeline:
    """ A pipeline that loads one page of results together with the total count

        This is achieved with a $facet stage that runs two pipelines over the same documents:

            {'$facet': {
                'data': [...stages, {'$skip': 20}, {'$limit': 10}],
                'total': [...stages, {'$count': 'count'}],
            }}

        and produces a single row:

            {'data': [...rows], 'total': [{'count': 27}]}

        The `total` list is empty when there's nothing to count.

        Example:

            ```python
            pp = PaginatedPipeline(page=3, per_page=10)
            rows = await executor.execute('User', pp.pipeline(data_stages, count_stages))
            pp.page_from(rows)  # -> Page(data=[...], page=3, per_page=10, total=27, total_pages=3)
            ```

            (!) only one query was made
    """
    __slots__ = ('page', 'per_page')

    #: Name of the $facet branch with the rows
    DATA_FIELD = 'data'
    #: Name of the $facet branch with the count
    TOTAL_FIELD = 'total'
    #: The field that $count puts the number into
    COUNT_FIELD = 'count'

    def __init__(self, page, per_page, max_per_page: int = None):
        """ Init the pagination

        :param page: Page number. Anything that float() accepts; floored, and at least 1.
        :param per_page: Rows per page. Anything that float() accepts; floored, and at least 1.
        :param max_per_page: Cap for `per_page`
        :raises InvalidQueryError: not a number
        """
        self.page = self._coerce('page', page)
        self.per_page = self._coerce('per_page', per_page)
        if max_per_page:
            self.per_page = min(self.per_page, max_per_page)

    @staticmethod
    def _coerce(name, value) -> int:
        try:
            return max(1, math.floor(float(value)))
        except (TypeError, ValueError, OverflowError):  # ValueError: NaN; OverflowError: infinity
            raise InvalidQueryError('paginate(): {} must be a number; {!r} given'.format(name, value))

    @property
    def skip(self) -> int:
        """ The number of rows on the previous pages """
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page

    def pipeline(self, data_stages: List[dict], count_stages: List[dict]) -> List[dict]:
        """ Build the pipeline

        :param data_stages: Stages that produce the rows of the page; skip and limit included
        :param count_stages: Stages that produce all rows to count
        """
        return [Stage.facet(**{
            self.DATA_FIELD: data_stages,
            self.TOTAL_FIELD: count_stages + [Stage.count(self.COUNT_FIELD)],
        })]

    def page_from(self, rows) -> Page:
        """ Get the Page out of the result rows """
        rows = list(rows)
        data = []
        total = 0

        if rows:
            row = rows[0]
            data = row.get(self.DATA_FIELD) or []
            counts = row.get(self.TOTAL_FIELD)
            # No documents, no $count row
            if counts:
                total = counts[0][self.COUNT_FIELD]

        return Page(data=data,
                    page=self.page,
                    per_page=self.per_page,
                    total=total,
                    total_pages=max(1, math.ceil(total / self.per_page)))

    def __repr__(self):
        return '{}(page={}, per_page={})'.format(self.__class__.__name__, self.page, self.per_page)
