"""Core orchestration package.

Architectural role:
    Exposes the fusion layer that sits between API/CLI entrypoints and
    lower-level subsystems (session state, image encoding, model adapters).

Composition:
    - `fusion`: The fusion invoker and response interpretation.
    - `loading`: Rotating status text shown while a fusion is pending.

Determinism and side effects:
    Package import itself is deterministic and side-effect free. Runtime side effects
    are performed by `fusion` on the session it is given.
"""
