from flask import Blueprint, Response, current_app, request, stream_with_context

from ..exceptions import InvalidCredential
from ..realtime import ChannelRegistry, format_sse
from ..utils.decorators import bearer_token
from ..utils.security import verify_token

bp = Blueprint("events", __name__, url_prefix="/api/events")


@bp.get("")
def stream():
    """
    Server-Sent Events stream. The connection joins the caller's private
    channel and receives broadcasts; it leaves when the client goes away.
    EventSource cannot set headers, so the token may come as ?token=.
    """
    token = request.args.get("token") or bearer_token()
    if not token:
        raise InvalidCredential("No token provided")
    identity = verify_token(current_app.config["SECRET_KEY"], token, current_app.config["TOKEN_MAX_AGE"])

    registry = ChannelRegistry.instance()
    cid = registry.open()
    registry.join(identity.subject_id, cid)
    heartbeat = current_app.config["SSE_HEARTBEAT"]

    def generate():
        try:
            yield format_sse("connected", {"connectionId": cid})
            while True:
                message = registry.next_message(cid, heartbeat)
                if message is None:
                    yield ": keep-alive\n\n"
                    continue
                yield format_sse(message["event"], message["data"])
        finally:
            registry.leave(cid)

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
