"""In-memory session state package.

Module split:
    - `slots`: upload slot manager with preview lifecycle.
    - `history`: `FusionResult` model and the bounded result history.
    - `state`: `FusionSession`, the single state holder used by adapters and
      the fusion invoker.

Nothing in this package is persisted; state lives for the process lifetime.
"""
