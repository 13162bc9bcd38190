from prometheus_client import Counter, Histogram, Gauge, Info

from blogapi.core.config import settings

app_info = Info("blogapi_app", "Application information")
app_info.info({"app": settings.PROJECT_NAME, "version": settings.VERSION})

# http request metrics
http_requests_total = Counter(
    "blogapi_http_requests_total",
    "Total HTTP requests count",
    ["method", "endpoint", "status_code"],
)

http_request_duration = Histogram(
    "blogapi_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)

active_requests = Gauge("blogapi_active_requests", "Number of active HTTP requests")

# cache metrics
cache_hits = Counter("blogapi_cache_hits_total", "Cache hits", ["cache_type"])

cache_misses = Counter("blogapi_cache_misses_total", "Cache misses", ["cache_type"])

# feed metrics
feed_builds = Counter("blogapi_feed_builds_total", "RSS feed builds", ["status"])

feed_build_duration = Histogram(
    "blogapi_feed_build_duration_seconds", "RSS feed build duration in seconds"
)

# article metrics
article_mutations = Counter(
    "blogapi_article_mutations_total", "Article mutations", ["operation"]
)

# search index metrics
search_index_operations = Counter(
    "blogapi_search_index_operations_total",
    "Search index operations scheduled",
    ["operation", "status"],
)
