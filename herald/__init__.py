"""Herald: automated-reply service core.

Wires a multi-device messaging client, an AI assistant and a document
database together:

- herald.auth: durable credential/key store for the messaging session
- herald.queue: per-conversation ordered message processing
- herald.assistant: reply generation through an opaque assistant call
"""

__version__ = "0.1.0"
