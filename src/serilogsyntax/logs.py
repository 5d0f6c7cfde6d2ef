# Template cache logs
TEMPLATE_PARSE_FAILED = "Template parse failed, caching empty result for: {template!r}"
TEMPLATE_CACHE_CLEARED = "Template cache cleared ({count} entries)"

# Classification cache logs
CLASSIFICATION_INVALIDATED = "Invalidated {count} cached classification spans for {edits} edits"
CLASSIFICATION_CACHE_CLEARED = "Classification cache cleared ({count} entries)"
CLASSIFY_FAILED = "Classification failed for line {line}, returning no spans"

# LRU cache logs
LRU_CLEARED = "LRU cache '{name}' cleared ({count} entries)"
CACHES_CLEARED = "All caches cleared"

# String tracker logs
RAW_REGION_FOUND = "Raw string ({quotes} quotes) opened on line {open_line}, closes on {close_line}"
VERBATIM_REGION_FOUND = "Verbatim string opened on line {open_line} contains line {line}"
REGION_NOT_LOGGING = "String region opened on line {open_line} is not a logging call"
TRACKER_CACHE_CLEARED = "String tracker cache cleared ({count} lines)"

# Config logs
CONFIG_LOADED = "Loaded config from {path}"
CONFIG_NOT_FOUND = "No config file at {path}, using defaults"

# LSP logs
LSP_DOCUMENT_OPENED = "Opened {uri} ({lines} lines)"
LSP_DOCUMENT_CHANGED = "Changed {uri}: {edits} edits"
LSP_DOCUMENT_CLOSED = "Closed {uri}"
