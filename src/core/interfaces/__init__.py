"""Interfaces/abstracciones del Core.

Define contratos (Protocol) que implementan los adaptadores concretos, de modo
que el Core depende de abstracciones y no de httpx.
"""
