# src/modules/realtime/realtime_controller.py

import asyncio
import contextlib
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from src.auth.dependencies import load_user_from_token
from src.common.database.database import async_session
from src.common.realtime import Subscription, change_feed

from . import realtime_service as service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


async def _send_snapshots(websocket: WebSocket, subscription: Subscription) -> None:
    async for snapshot in subscription:
        await websocket.send_json({"collection": subscription.query.collection, "records": snapshot})


@router.websocket("/ws/{collection}")
async def stream_collection(
    websocket: WebSocket,
    collection: str,
    token: str = Query(...),
    patient_id: Optional[UUID] = Query(None),
):
    """
    Stream snapshots of a collection: one on connect, then one per change.

    Only rows the signed-in actor may read are sent.
    """
    try:
        async with async_session() as session:
            actor = await load_user_from_token(token, session)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        query = service.build_stream_query(collection, patient_id)
    except ValueError:
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
        return

    await websocket.accept()
    subscription = change_feed.subscribe(query, service.snapshot_loader(actor.id))
    sender = asyncio.create_task(_send_snapshots(websocket, subscription))
    logger.info("Stream opened: %s for %s", collection, actor.id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        subscription.cancel()
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect):
            await sender
        logger.info("Stream closed: %s for %s", collection, actor.id)
