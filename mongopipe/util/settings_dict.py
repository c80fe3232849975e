from typing import Mapping


class PipelineQuerySettingsDict(dict):
    """ PipelineQuery settings container.

        Is only used for nice autocompletion and documentation purposes only! :)

        The keyword settings in this object are just plain kwargs names
        for every handler object's __init__ method,
        which are fed to subclasses of PipelineHandlerBase by PipelineQuerySettingsHandler.

        In addition to that, there are '<handler-name>_enabled' settings,
        that can enable or disable a handler.
    """

    def __init__(self,
                 # --- filter
                 operators: Mapping[str, str] = None,
                 # --- join
                 max_join_depth: int = 2,
                 # --- limit
                 max_items: int = None,
                 # --- enabled handlers?
                 add_fields_enabled: bool = True,
                 filter_enabled: bool = True,
                 join_enabled: bool = True,
                 limit_enabled: bool = True,
                 count_enabled: bool = True,
                 project_enabled: bool = True,
                 sort_enabled: bool = True,
                 ):
        """ `PipelineQuery` settings that let you restrict and extend the way pipelines are built.

        Example:
            ```python
            from mongopipe import PipelineQuery, PipelineQuerySettingsDict

            q = PipelineQuery('User', executor, lookup, PipelineQuerySettingsDict(
                # No nested `.join('posts.category')`
                max_join_depth=1,
                # Never load more than 100 rows at once
                max_items=100,
                # Custom operators for `.where(field, operator, value)`
                operators={'~': '$regex'},
            ))
            ```

        Args:
            operators (dict[str, str] | None): (for: filter)
                Additional operators for `.where(field, operator, value)`:
                a mapping from the operator token to a MongoDB comparison operator.
            max_join_depth (int): (for: join)
                The maximum number of dot-separated segments in a relationship path given to `.join()`.
                Must be a positive integer.
            max_items (int | None): (for: limit)
                The maximum number of rows a query can return.
                It is imposed on `get()` even when no `limit()` was given, and caps `paginate()` page sizes.
            add_fields_enabled (bool): Enable the `add_fields()` method.
            filter_enabled (bool): Enable the `where()` method.
            join_enabled (bool): Enable the `join()` method.
            limit_enabled (bool): Enable the `skip()` and `limit()` methods.
            count_enabled (bool): Enable the `count()` method.
            project_enabled (bool): Enable the `select()` method.
            sort_enabled (bool): Enable the `order_by()` method.
        """
        super(PipelineQuerySettingsDict, self).__init__()
        self.update({k: v
                     for k, v in locals().items()
                     if k not in {'__class__', 'self'}})

    def and_more(self, **settings):
        """ Copy the object and add more settings to it """
        return self.__class__(**{**self, **settings})
