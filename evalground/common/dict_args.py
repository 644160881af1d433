# -*- coding: utf-8 -*-
"""
dict_args dict args
"""
import copy


def _convert_value(value):
    if isinstance(value, dict):
        return DictArgs(value)
    elif isinstance(value, (list, tuple)):
        return [_convert_value(v) for v in value]
    else:
        return value


class DictArgs(dict):
    """dict with attribute access, nested dicts are converted recursively."""

    def __init__(self, data: dict):
        super().__init__()
        if not isinstance(data, dict):
            raise ValueError("data not a dict")
        for key, value in data.items():
            setattr(self, key, _convert_value(value))

    def __setattr__(self, key, value):
        self[key] = _convert_value(value)

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError as e:
            raise AttributeError(key) from e

    def section(self, key: str) -> "DictArgs":
        """Return a nested section, an empty one when missing or null."""
        value = self.get(key)
        if isinstance(value, DictArgs):
            return value
        if isinstance(value, dict):
            return DictArgs(value)
        return DictArgs({})

    def to_dict(self) -> dict:
        return {
            k: v.to_dict() if isinstance(v, DictArgs) else copy.deepcopy(v)
            for k, v in self.items()
        }

    def __deepcopy__(self, memo):
        new_dict_args = DictArgs({})
        for key, value in self.items():
            new_dict_args[key] = copy.deepcopy(value, memo)
        return new_dict_args

    # Support pickling/serialization
    def __getstate__(self):
        return dict(self)

    def __setstate__(self, state):
        self.update(state)
