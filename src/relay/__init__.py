"""Call session engine for Twilio ConversationRelay.

Transport events flow through the session router into the conversation store
and the response generator; replies flow back out through the fragment emitter.
"""
