"""Core orchestration package.

Architectural role:
    Sits between the API/CLI adapters and the lower-level subsystems
    (classification, connectors, aggregation, completion, conversation state).

Composition:
    - `engine`: `TurnRouter`, the per-conversation turn state machine.
    - `routing_types`: route, state, and decision schema.
    - `messages`: conversation message and content-part data model.
"""
