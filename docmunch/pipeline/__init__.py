"""docmunch.pipeline: extraction, Markdown conversion, file placement and manifests."""
