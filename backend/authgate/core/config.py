from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "authgate"

    # GitHub API
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_API_TIMEOUT: float = 10.0

    # Write probe (label create + delete) used for externally supplied tokens
    PROBE_LABEL_PREFIX: str = "authgate-probe"
    PROBE_STEP_TIMEOUT_SECONDS: float = 10.0
    PROBE_TOTAL_TIMEOUT_SECONDS: float = 60.0
    PROBE_MAX_ATTEMPTS: int = 3
    PROBE_INITIAL_DELAY_SECONDS: float = 1.0
    PROBE_MAX_DELAY_SECONDS: float = 8.0
    PROBE_BACKOFF_FACTOR: float = 2.0

    # Upper bound for the whole prepare step
    AUTHORIZATION_TIMEOUT_SECONDS: float = 120.0

    LOG_LEVEL: str = "INFO"

    # Trusted bots are matched by exact login ("dependabot[bot]"). The "[bot]"
    # suffix is never stripped, so "dependabot" does not match "dependabot[bot]".
    # The trusted bots list itself is read from the run context, not from here.

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
