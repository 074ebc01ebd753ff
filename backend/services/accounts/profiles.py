"""Channel profile aggregation over subscription edges."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import false, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlalchemy.sql import ColumnElement

from core import NotFoundError, ValidationError
from models import Subscription, User
from .identity import is_blank, normalize_username
from .schemas import ChannelProfile


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def get_channel_profile(
    session: AsyncSession,
    channel_username: str | None,
    viewer_id: str | None = None,
) -> ChannelProfile:
    """Return the public profile of a channel with its subscription counts.

    Counts are counts of edges: duplicate subscriber/channel pairs are not
    collapsed. ``is_subscribed`` reports whether ``viewer_id`` is among the
    channel's subscribers; anonymous viewers are never subscribed.
    """
    if channel_username is None or is_blank(channel_username):
        raise ValidationError("Please provide a valid username")
    username = normalize_username(channel_username)

    subscriber_edges = aliased(Subscription)
    subscribed_to_edges = aliased(Subscription)

    subscribers_count = (
        select(func.count(cast(Any, subscriber_edges.id)))
        .where(_eq(subscriber_edges.channel_id, User.id))
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count(cast(Any, subscribed_to_edges.id)))
        .where(_eq(subscribed_to_edges.subscriber_id, User.id))
        .scalar_subquery()
    )
    if viewer_id is None:
        is_subscribed: Any = false()
    else:
        is_subscribed = (
            select(subscriber_edges.id)
            .where(
                _eq(subscriber_edges.channel_id, User.id),
                _eq(subscriber_edges.subscriber_id, viewer_id),
            )
            .exists()
        )

    result = await session.execute(
        select(
            User.full_name,
            User.username,
            User.avatar_url,
            User.cover_image_url,
            subscribers_count.label("subscribers_count"),
            subscribed_to_count.label("subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(_eq(User.username, username))
    )
    row = result.mappings().first()
    if row is None:
        raise NotFoundError("Channel not found")

    return ChannelProfile(
        full_name=row["full_name"],
        username=row["username"],
        avatar_url=row["avatar_url"],
        cover_image_url=row["cover_image_url"],
        subscribers_count=int(row["subscribers_count"] or 0),
        subscribed_to_count=int(row["subscribed_to_count"] or 0),
        is_subscribed=bool(row["is_subscribed"]),
    )
