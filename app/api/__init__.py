"""Procedure API served over aiohttp."""
