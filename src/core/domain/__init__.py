"""Modelos y entidades del dominio.

Aquí viven las estructuras de datos puras (Pydantic v2), el orden de
versiones y la taxonomía de errores. El dominio no conoce HTTP ni la CLI.
"""
