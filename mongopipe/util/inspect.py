import inspect
from functools import lru_cache
from typing import Callable, Mapping, Tuple


@lru_cache(100)
def get_function_defaults(for_func: Callable) -> dict:
    """ Get a dict of function's keyword arguments that have default values """
    return {name: param.default
            for name, param in inspect.signature(for_func).parameters.items()
            if param.default is not param.empty
            and param.kind in (param.POSITIONAL_OR_KEYWORD, param.KEYWORD_ONLY)}


def pluck_kwargs_from(dct: Mapping, for_func: Callable, skip: Tuple[str] = ()) -> dict:
    """ Analyze a function, pluck the arguments it needs from a dict """
    defaults = get_function_defaults(for_func)

    # Get the values for these kwargs
    return {k: dct.get(k, defaults[k])
            for k in defaults.keys()
            if k not in skip}
