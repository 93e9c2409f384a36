"""API — a small JSON REST API built from resource classes.

CRUD for an "items" resource plus a per-owner view. Demonstrates:
operation names becoming routes, id resources (``ItemsId``), gaps
(``Owners`` with ``:owner``), typed parameters through ``ctx.finder``,
and the ``{"data": ..., "error": ...}`` envelope.

Routes::

    GET    /api/items
    POST   /api/items
    GET    /api/items/:id
    PUT    /api/items/:id
    DELETE /api/items/:id
    POST   /api/items/:id/done
    GET    /api/owners/:owner/items
    GET    /api/owners/:owner/items/:id

Run:
    cd examples/api && python app.py
"""

import threading
from dataclasses import dataclass, replace

from perch import App, AppConfig, Context, RequestError, allow_cors

app = App(AppConfig(base_path="/api/", handle_cors=allow_cors))


# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Item:
    id: int
    title: str
    owner: str
    done: bool


_items: dict[int, Item] = {}
_next_id = 1
_lock = threading.Lock()


def _get_next_id() -> int:
    global _next_id
    with _lock:
        n = _next_id
        _next_id += 1
        return n


def _lookup(item_id: int) -> Item:
    with _lock:
        item = _items.get(item_id)
    if item is None:
        raise RequestError("itemNotFound", status=404)
    return item


def _store(item: Item) -> Item:
    with _lock:
        _items[item.id] = item
    return item


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@app.resource
class Items:
    def Get(self, ctx: Context) -> None:
        """List items, ``limit`` (1-100) and ``offset`` from query or body."""
        limit, _ = ctx.finder.find_optional_int(50, "limit")
        offset, _ = ctx.finder.find_optional_int(0, "offset")
        limit = min(max(limit, 1), 100)
        offset = max(offset, 0)

        with _lock:
            all_items = sorted(_items.values(), key=lambda x: x.id)
        ctx.data = {
            "items": all_items[offset : offset + limit],
            "total": len(all_items),
        }

    def Post(self, ctx: Context) -> None:
        title = ctx.finder.require_string_rune_len(1, 201, "title").strip()
        owner, _ = ctx.finder.find_optional_string("anonymous", "owner")
        ctx.data = _store(Item(id=_get_next_id(), title=title, owner=owner, done=False))
        ctx.status = 201


@app.resource
class ItemsId:
    def Get(self, ctx: Context) -> None:
        ctx.data = _lookup(ctx.id)

    def Put(self, ctx: Context) -> None:
        item = _lookup(ctx.id)
        title, err = ctx.finder.find_string("title")
        if err is None:
            item = replace(item, title=title.strip())
        done, err = ctx.finder.find_bool("done")
        if err is None:
            item = replace(item, done=done)
        ctx.data = _store(item)

    def Delete(self, ctx: Context) -> None:
        item = _lookup(ctx.id)
        with _lock:
            _items.pop(item.id, None)
        ctx.data = item

    def PostDone(self, ctx: Context) -> None:
        ctx.data = _store(replace(_lookup(ctx.id), done=True))


@app.resource(gap=":owner")
class Owners:
    def Items(self, ctx: Context) -> None:
        owner = ctx.gap_segment(":owner")
        with _lock:
            ctx.data = sorted(
                (i for i in _items.values() if i.owner == owner), key=lambda x: x.id
            )

    def ItemsId(self, ctx: Context) -> None:
        item = _lookup(ctx.id)
        if item.owner != ctx.gap_segment(":owner"):
            raise RequestError("itemNotFound", status=404)
        ctx.data = item


if __name__ == "__main__":
    app.run()
