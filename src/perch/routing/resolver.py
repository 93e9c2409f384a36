"""Request path resolution.

Maps a verb and a base-relative path to the template the compiler would
have produced for it, extracting the identifier and gap segments along
the way::

    resolve_path("GET", "users/adam/image_url", {"users": (":username",)})
    # key "GET /users/:username/image_url", id 0, gaps (":username",)

    resolve_path("GET", "users/jack/photos/56", {"users": (":username",)})
    # key "GET /users/:username/photos/:id", id 56

A numeric second segment is an identifier unless the resource has a gap
and integer gaps are allowed; only then does the gap win.
"""

from collections.abc import Mapping

from perch._internal.numbers import parse_int64
from perch.routing.route import ID_PLACEHOLDER, ResolvedRoute, RouteKey, Verb

_ROUTED_VERBS = frozenset({"POST", "PUT", "DELETE", "PATCH"})


def routed_verb(method: str) -> Verb:
    """The verb *method* routes under. HEAD, OPTIONS and unknown methods route as GET."""
    if method in _ROUTED_VERBS:
        return Verb(method)
    return Verb.GET


def resolve_path(
    method: str,
    raw_path: str,
    gaps: Mapping[str, tuple[str, ...]],
    *,
    allow_integer_gap: bool = False,
) -> ResolvedRoute:
    """Resolve *raw_path* (relative to the base path) into a route key."""
    segments = raw_path.split("/")
    resource = segments[0]
    words = [resource]
    route_id = 0

    gap = gaps.get(resource)
    second = segments[1] if len(segments) > 1 else ""
    number = parse_int64(second)

    if number is not None and (not gap or not allow_integer_gap):
        route_id = number
        words.append(ID_PLACEHOLDER)
        if len(segments) > 2 and segments[2]:
            words.append(segments[2])
    else:
        if gap is not None and second:
            words.extend(gap)
        method_index = len(gap or ()) + 1
        if len(segments) > method_index and segments[method_index]:
            words.append(segments[method_index])
        id_index = method_index + 1
        if len(segments) > id_index and segments[id_index]:
            number = parse_int64(segments[id_index])
            if number is not None:
                route_id = number
                words.append(ID_PLACEHOLDER)

    return ResolvedRoute(
        key=RouteKey(routed_verb(method), "/" + "/".join(words)),
        id=route_id,
        segments=tuple(segments),
        gaps=gap or (),
    )
