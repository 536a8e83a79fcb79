"""
Chat relay services.

- retry: exponential backoff for overloaded upstream calls
- fallback: ordered strategies, first success wins
- gemini_client: Gemini SDK wrapper and handle protocols
- history: caller history -> upstream turns / flattened prompt
- model_resolver: cached + ranked model selection with liveness probes
- invoker: multi-turn send with flattened-prompt fallback
- error_classifier: upstream failure -> user-facing message
- chat_orchestrator: one chat turn end to end
- model_diagnostics: model listing and smoke tests
"""
