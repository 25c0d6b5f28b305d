"""
Pydantic models for structured error logging.

This module defines type-safe error record models with automatic validation
and classification so search, interaction and scheduler failures are
recorded with one consistent shape.
"""

import json
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict


class ErrorComponent(str, Enum):
    """System components that can generate errors."""
    SEARCH = "search"
    INTERACTION = "interaction"
    CAMPAIGN = "campaign"
    SCHEDULER = "scheduler"
    DATABASE = "db"
    CONFIG = "config"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Error severity levels matching logging standards."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorType(str, Enum):
    """
    Categorized error types for classification.

    New error types should be added here to keep the taxonomy consistent.
    """
    # Validation errors
    VALIDATION_ERROR = "validation_error"

    # Network errors
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"

    # Browser errors
    BROWSER_ERROR = "browser_error"
    NAVIGATION_ERROR = "navigation_error"
    ELEMENT_NOT_FOUND = "element_not_found"
    TYPING_ERROR = "typing_error"

    # Database errors
    DB_CONNECTION_ERROR = "db_connection_error"
    DB_UPSERT_ERROR = "db_upsert_error"
    DB_QUERY_ERROR = "db_query_error"

    # Scheduler errors
    TASK_ERROR = "task_error"

    # Configuration errors
    CONFIG_ERROR = "config_error"

    UNKNOWN = "unknown"


class ErrorStage:
    """
    Standardized stage names for error logging.

    Search stages mirror the states of the search-and-match engine.
    """
    # Search stages
    HOMEPAGE_LOAD = "homepage_load"
    SEARCH_BAR_LOCATE = "search_bar_locate"
    TYPE_QUERY = "type_query"
    SUBMIT = "submit"
    RESULTS_WAIT = "results_wait"
    EXTRACT_AND_MATCH = "extract_and_match"
    CLICK_THROUGH = "click_through"
    NEXT_PAGE = "next_page"

    # Interaction stages
    OPEN_TARGET = "open_target"

    # Campaign / scheduler stages
    LAUNCH_BROWSER = "launch_browser"
    RUN_BOT = "run_bot"
    RUN_TASK = "run_task"

    # Database stages
    READ_RECORD = "read_record"
    STORE_RANK = "store_rank"
    INCREMENT_HITS = "increment_hits"
    STORE_METADATA = "store_metadata"

    # Config stages
    VALIDATE_CONFIG = "validate_config"


class ErrorRecord(BaseModel):
    """
    Structured error record for database insertion.

    Validates all error data before logging so a malformed record can never
    cause a second failure inside the error path.
    """
    # Required fields
    component: ErrorComponent = Field(..., description="System component")
    stage: str = Field(..., min_length=1, max_length=100, description="Processing stage")
    error_type: ErrorType = Field(..., description="Error category")
    severity: ErrorSeverity = Field(default=ErrorSeverity.ERROR, description="Severity level")
    domain: str = Field(..., min_length=1, max_length=255, description="Target or engine domain")
    message: str = Field(..., min_length=1, description="Human-readable error message")

    # Optional context
    url: Optional[str] = Field(None, max_length=2048, description="Specific URL if applicable")
    user_id: Optional[str] = Field(None, max_length=255, description="Campaign owner")
    exception_type: Optional[str] = Field(None, max_length=255, description="Exception class name")
    stack_trace: Optional[str] = Field(None, description="Stack trace for unexpected errors")

    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional context")

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Error timestamp"
    )

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        """Ensure stage is not empty and normalized."""
        if not v or not v.strip():
            return "unknown"
        return v.strip().lower().replace(" ", "_")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Ensure message is not empty."""
        if not v or not v.strip():
            return "No error message provided"
        return v.strip()[:5000]

    @field_validator("metadata")
    @classmethod
    def sanitize_metadata(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Convert values that are not JSON-serializable to strings."""
        sanitized = {}
        for key, value in v.items():
            try:
                json.dumps(value)
                sanitized[key] = value
            except (TypeError, ValueError):
                sanitized[key] = str(value)
        return sanitized

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        domain: str,
        url: Optional[str] = None,
        user_id: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        include_stack_trace: Optional[bool] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ErrorRecord":
        """
        Create ErrorRecord from an exception with automatic classification.

        Args:
            exc: The exception that occurred
            component: System component where error occurred
            stage: Processing stage
            domain: Target or engine domain
            url: Optional specific URL
            user_id: Optional campaign owner
            severity: Error severity (default: ERROR)
            error_type: Optional explicit error type (auto-detected if None)
            include_stack_trace: Whether to include full stack trace (auto if None)
            metadata: Additional context

        Returns:
            ErrorRecord instance ready for logging

        Example:
            >>> try:
            ...     await page.goto(profile.homepage_url, timeout=60_000)
            ... except Exception as e:
            ...     record = ErrorRecord.from_exception(
            ...         e,
            ...         component=ErrorComponent.SEARCH,
            ...         stage=ErrorStage.HOMEPAGE_LOAD,
            ...         domain="duckduckgo.com",
            ...     )
        """
        if error_type is None:
            error_type = cls._classify_exception(exc)

        message = str(exc) or f"{type(exc).__name__} occurred"
        exception_type = f"{type(exc).__module__}.{type(exc).__name__}"

        if include_stack_trace is None:
            include_stack_trace = cls._should_include_stack(exc, severity)

        stack_trace = None
        if include_stack_trace:
            try:
                stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
                if len(stack_trace) > 10000:
                    stack_trace = stack_trace[:10000] + "\n... (truncated)"
            except Exception:
                stack_trace = None

        return cls(
            component=component,
            stage=stage,
            error_type=error_type,
            severity=severity,
            domain=domain,
            url=url,
            user_id=user_id,
            message=message,
            exception_type=exception_type,
            stack_trace=stack_trace,
            metadata=metadata or {},
        )

    @staticmethod
    def _classify_exception(exc: Exception) -> ErrorType:
        """
        Classify an exception into an ErrorType.

        Uses exception type and message patterns to determine category.
        """
        exc_name = type(exc).__name__.lower()
        exc_msg = str(exc).lower()

        if "validation" in exc_name:
            return ErrorType.VALIDATION_ERROR

        if "homepage" in exc_name:
            return ErrorType.NAVIGATION_ERROR
        if "searchinput" in exc_name:
            return ErrorType.ELEMENT_NOT_FOUND
        if "typing" in exc_name:
            return ErrorType.TYPING_ERROR

        if "timeout" in exc_name or "timeout" in exc_msg:
            return ErrorType.TIMEOUT
        if "connection" in exc_name:
            return ErrorType.CONNECTION_ERROR
        if "net::" in exc_msg:
            return ErrorType.NAVIGATION_ERROR
        if "http" in exc_name or "status" in exc_msg:
            return ErrorType.HTTP_ERROR

        if "playwright" in type(exc).__module__ or "browser" in exc_name:
            return ErrorType.BROWSER_ERROR
        if "selector" in exc_msg:
            return ErrorType.ELEMENT_NOT_FOUND

        if "postgrest" in exc_name or "apierror" in exc_name:
            return ErrorType.DB_UPSERT_ERROR

        return ErrorType.UNKNOWN

    @staticmethod
    def _should_include_stack(exc: Exception, severity: ErrorSeverity) -> bool:
        """
        Decide whether a stack trace is worth keeping.

        Expected errors (timeouts, missing elements) don't need stacks.
        Unexpected errors do.
        """
        if severity == ErrorSeverity.CRITICAL:
            return True

        if severity in (ErrorSeverity.WARNING, ErrorSeverity.INFO, ErrorSeverity.DEBUG):
            return False

        EXPECTED_ERRORS = (
            "ValidationError",
            "TimeoutError",
            "HomepageLoadError",
            "SearchInputNotFoundError",
            "QueryTypingError",
        )

        return type(exc).__name__ not in EXPECTED_ERRORS
