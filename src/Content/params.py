"""
params.py
Diff and merge for parameter archive trees.

Objects diff parameter by parameter; lists recurse into their child lists
and objects.  Names that only exist in the base are carried over unchanged:
parameter archives have no way to express a removed object, so a diff only
ever adds or replaces.
"""

from __future__ import annotations

from ukformats.aamp import ParameterIO, ParameterList, ParameterObject


def diff_pobj(base: ParameterObject, other: ParameterObject) -> ParameterObject:
    return ParameterObject({
        key: param for key, param in other.items()
        if base.params.get(key) != param
    })


def merge_pobj(base: ParameterObject, diff: ParameterObject) -> ParameterObject:
    merged = base.copy()
    merged.params.update(diff.params)
    return merged


def diff_plist(base: ParameterList, other: ParameterList) -> ParameterList:
    out = ParameterList()
    for key, plist in other.lists.items():
        if key not in base.lists:
            out.lists[key] = plist
        elif base.lists[key] != plist:
            out.lists[key] = diff_plist(base.lists[key], plist)
    for key, obj in other.objects.items():
        if key not in base.objects:
            out.objects[key] = obj
        elif base.objects[key] != obj:
            out.objects[key] = diff_pobj(base.objects[key], obj)
    return out


def merge_plist(base: ParameterList, diff: ParameterList) -> ParameterList:
    out = ParameterList(base.lists, base.objects)
    for key, plist in diff.lists.items():
        out.lists[key] = merge_plist(base.lists[key], plist) if key in base.lists else plist
    for key, obj in diff.objects.items():
        out.objects[key] = merge_pobj(base.objects[key], obj) if key in base.objects else obj
    return out


def diff_pio(base: ParameterIO, other: ParameterIO) -> ParameterIO:
    plist = diff_plist(base, other)
    return ParameterIO(plist.lists, plist.objects, other.version, other.data_type)


def merge_pio(base: ParameterIO, diff: ParameterIO) -> ParameterIO:
    plist = merge_plist(base, diff)
    out = ParameterIO(plist.lists, plist.objects, diff.version, diff.data_type)
    out.endian = base.endian
    return out
