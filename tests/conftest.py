"""Shared test fixtures for the asyncapi-typegen test suite."""
from __future__ import annotations

import logging
from typing import Any, Generator

import pytest

from src.shared.constants import LOGGER_NAMESPACE


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Undo the handler and level the CLI installs on the package logger."""
    yield
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def order_spec() -> dict[str, Any]:
    """AsyncAPI document with an order schema graph and two channels."""
    return {
        "asyncapi": "3.0.0",
        "info": {
            "title": "Orders API",
            "version": "1.0.0",
            "description": "Order lifecycle events",
        },
        "channels": {
            "orders": {
                "address": "orders",
                "messages": {
                    "OrderCreated": {"$ref": "#/components/messages/OrderCreated"},
                    "OrderUpdated": {"$ref": "#/components/messages/OrderUpdated"},
                },
            },
            "notifications": {
                "address": "notifications",
                "messages": {
                    "EmailSent": {"$ref": "#/components/messages/EmailSent"},
                },
            },
        },
        "operations": {
            "publishOrderCreated": {
                "action": "send",
                "channel": {"$ref": "#/channels/orders"},
                "messages": [{"$ref": "#/channels/orders/messages/OrderCreated"}],
            },
            "publishOrderUpdated": {
                "action": "send",
                "channel": {"$ref": "#/channels/orders"},
                "messages": [{"$ref": "#/channels/orders/messages/OrderUpdated"}],
            },
            "onEmailSent": {
                "action": "receive",
                "channel": {"$ref": "#/channels/notifications"},
            },
        },
        "components": {
            "messages": {
                "OrderCreated": {
                    "description": "An order was placed",
                    "payload": {"$ref": "#/components/schemas/Order"},
                },
                "OrderUpdated": {
                    "payload": {"$ref": "#/components/schemas/Order"},
                    "headers": {
                        "type": "object",
                        "properties": {"correlationId": {"type": "string"}},
                    },
                },
                "EmailSent": {
                    "payload": {
                        "type": "object",
                        "properties": {
                            "to": {"type": "string"},
                            "subject": {"type": "string"},
                        },
                        "required": ["to"],
                    },
                },
            },
            "schemas": {
                "Order": {
                    "type": "object",
                    "description": "A customer order",
                    "properties": {
                        "id": {"type": "string", "description": "Order identifier"},
                        "items": {
                            "type": "array",
                            "items": {"$ref": "#/components/schemas/OrderItem"},
                        },
                        "status": {"$ref": "#/components/schemas/OrderStatus"},
                    },
                    "required": ["id", "items"],
                },
                "OrderItem": {
                    "type": "object",
                    "properties": {
                        "productId": {"type": "string"},
                        "quantity": {"type": "integer"},
                        "price": {"type": "number"},
                    },
                    "required": ["productId", "quantity"],
                },
                "OrderStatus": {
                    "type": "string",
                    "enum": ["pending", "confirmed", "shipped", "delivered", "cancelled"],
                },
            },
        },
    }
