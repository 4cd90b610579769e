"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - Single endpoint for every conversation; clients join
               conversation rooms with joinConversation frames

Authentication:
    JWT token is passed as ?token=<jwt_access_token> or as the subprotocol
    pair ["jwt", <token>]. JWTAuthMiddleware attaches the user to the
    consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
