"""Model access package.

Architectural role:
    Provides provider configuration, request-payload construction, and transport
    adapters used by the fusion invoker to reach the hosted multimodal model.

Module split:
    - `provider_config`: environment-driven model and credential configuration.
    - `service`: encoded images + prompt to payload adapter.
    - `client`: Gemini HTTP transport.
"""
