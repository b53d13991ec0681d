"""
Reel Catalog backend: media directory catalog served over aiohttp.
"""
