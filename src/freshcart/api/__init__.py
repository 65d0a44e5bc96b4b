"""FreshCart HTTP API package."""

# Routers are resolved lazily: domain traversal loads each submodule directly,
# and an eager import here would re-enter a submodule that is still loading.
_ROUTER_MODULES = {
    "fulfillment_router": "freshcart.api.fulfillments",
    "maintenance_router": "freshcart.api.maintenance",
    "order_router": "freshcart.api.orders",
    "payment_router": "freshcart.api.payments",
    "refund_router": "freshcart.api.refunds",
    "slot_router": "freshcart.api.slots",
}


def __getattr__(name):
    import importlib

    if name in _ROUTER_MODULES:
        return getattr(importlib.import_module(_ROUTER_MODULES[name]), name)
    if name == "routers":
        return [
            __getattr__(router)
            for router in (
                "order_router",
                "fulfillment_router",
                "slot_router",
                "refund_router",
                "payment_router",
                "maintenance_router",
            )
        ]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "fulfillment_router",
    "maintenance_router",
    "order_router",
    "payment_router",
    "refund_router",
    "routers",
    "slot_router",
]
