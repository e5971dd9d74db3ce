from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from contact_api.database.messages import MessageStore
from contact_api.errors import StorageError
from contact_api.utils.my_logger import init_logger

messages_router = APIRouter()

messages_logger = init_logger('messages-logger')


@messages_router.api_route('/api/messages', methods=['GET'])
async def list_messages(request: Request):
    """
        **list_messages**
            returns every stored submission in acceptance order, unauthenticated so
            deployments must protect this route themselves
    :param request:
    :return:
    """
    store: MessageStore = request.app.state.store
    try:
        count, messages = await store.list_all()
    except StorageError as e:
        messages_logger.error(f"Error reading messages: {e.message}")
        return JSONResponse(content={'error': 'Could not read messages'}, status_code=500)

    return JSONResponse(content={'count': count, 'messages': messages}, status_code=200)
