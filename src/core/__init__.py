"""Core domain package for the report mention bot.

Core contains mention classification and report dispatch logic without any
matrix-nio specific code, keeping the business logic portable.
"""
