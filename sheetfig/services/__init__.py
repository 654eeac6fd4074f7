"""
sheetfig Services

- config - Remote configuration loading, caching and refresh
"""
