"""Shared fixtures."""

import copy

import pytest


BASE_SPEC = {
    "openapi": "3.0.3",
    "info": {"title": "Weather API", "version": "1.0.0"},
    "paths": {
        "/users": {
            "get": {
                "summary": "List users",
                "parameters": [
                    {"name": "status", "in": "query", "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "Users",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/User"},
                                }
                            }
                        },
                    }
                },
            }
        },
        "/weather": {
            "get": {
                "parameters": [
                    {"name": "city", "in": "query", "required": True, "schema": {"type": "string"}},
                    {"name": "units", "in": "query", "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {"description": "Forecast"},
                    "404": {"description": "Unknown city"},
                },
            }
        },
    },
    "components": {
        "schemas": {
            "User": {
                "type": "object",
                "required": ["name"],
                "properties": {"name": {"type": "string"}},
            }
        },
        "securitySchemes": {"bearerAuth": {"type": "http", "scheme": "bearer"}},
    },
}


@pytest.fixture
def base_spec():
    """A fresh copy of the sample spec."""
    return copy.deepcopy(BASE_SPEC)


@pytest.fixture
def new_spec():
    """A second, independent copy to mutate into the next version."""
    return copy.deepcopy(BASE_SPEC)
