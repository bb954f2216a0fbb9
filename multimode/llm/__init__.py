"""Provider access package.

Architectural role:
    Provides provider configuration, the credential pool, model selection policy,
    and the `ProviderClient` used by the mode registry to invoke text and image
    generation backends.

Module split:
    - `provider_config`: environment-driven endpoint, model, and key configuration.
    - `credentials`: rotating credential pool.
    - `model_selection`: pure catalog filtering and model preference policy.
    - `errors`: provider failure taxonomy.
    - `client`: `ProviderClient` (Gemini HTTP transport, discovery, image dispatch).
"""
