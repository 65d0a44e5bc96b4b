"""Who is calling. Authentication happens upstream; we only read the forwarded headers."""

from dataclasses import dataclass

from fastapi import Header


@dataclass(frozen=True)
class Actor:
    id: str
    role: str


def current_actor(
    x_actor_id: str = Header(default="anonymous"),
    x_actor_role: str = Header(default="customer"),
) -> Actor:
    return Actor(id=x_actor_id, role=x_actor_role)
