from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "google/gemini-2.5-flash-lite"
    openrouter_model: str = ""
    planner_model: str = ""  # optional override for query planning only
    synthesis_model: str = ""  # optional override for the final answer only
    llm_max_tokens: int = 8192

    # Primary search provider (Perplexity Search API)
    perplexity_api_key: str = ""
    perplexity_search_url: str = "https://api.perplexity.ai/search"
    perplexity_max_results: int = 10
    perplexity_max_domains: int = 10
    perplexity_max_tokens_per_page: int = 1024
    search_timeout_seconds: float = 30.0
    search_max_attempts: int = 1
    search_retry_backoff_seconds: float = 0.4

    # SearXNG mirror pool
    searx_mirrors: str = ""  # comma-separated; empty uses the built-in registry
    searx_timeout_seconds: float = 15.0
    searx_user_agent: str = "Mozilla/5.0 (compatible; faithsearch/0.1)"

    # Categories
    enabled_categories: str = ""  # comma-separated keys; empty enables all

    # Page scraping / extraction
    scrape_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    scrape_timeout_seconds: float = 20.0
    scrape_max_attempts: int = 2
    scrape_retry_backoff_seconds: float = 0.4
    scrape_pacing_seconds: float = 0.65
    unsafe_fetch: bool = False  # relaxed TLS retry for sites with broken certificates
    extractor_min_block_chars: int = 80
    extractor_fallback_max_chars: int = 2000
    extractor_fallback: str = "trafilatura"  # trafilatura | none

    # Retrieval orchestration
    retrieval_batch_size: int = 3
    retrieval_batch_delay_seconds: float = 2.0
    retrieval_deadline_seconds: float = 300.0

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def searx_mirror_list(self) -> list[str]:
        return [m.strip() for m in self.searx_mirrors.split(",") if m.strip()]

    @property
    def enabled_category_list(self) -> list[str]:
        return [c.strip().lower() for c in self.enabled_categories.split(",") if c.strip()]


settings = Settings()
