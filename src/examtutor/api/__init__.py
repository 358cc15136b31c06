"""
Package 'api':
    HTTP surface (FastAPI) over ingestion, answering and question listing.
"""
