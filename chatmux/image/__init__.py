"""Image adapter package.

Scope:
    - `client` / `service`: text-to-image generation over an OpenAI-compatible
      images endpoint.
    - `vision`: image description, classification, and explanation via a
      vision model.
"""
