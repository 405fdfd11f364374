"""Run options for publishing automated test results."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PublishOptions:
    """Immutable options of one publishing run.

    Attributes:
        server_url: TestBench server address
        workspace: Workspace (tenant) name used for login
        username: Login name
        password: Login password (never shown in repr)
        product_id: Product the test cases belong to
        session_prefix: Prefix of the test session name
        skip_test_case_updates: Never create or modify remote test cases
        close_already_running_automation: Close a conflicting automation run and retry once
        use_automation_runs: Publish through automation runs instead of executions
        timeout: Per-request timeout in seconds
        verify_tls: Verify server certificates

    Example:
        >>> options = PublishOptions(
        ...     server_url="https://testbench.example.com",
        ...     workspace="imbus",
        ...     username="ci",
        ...     password="secret",
        ...     product_id=4,
        ... )
    """
    server_url: str
    workspace: str
    username: str
    password: str = field(repr=False)
    product_id: int
    session_prefix: str = "CYPRESS"
    skip_test_case_updates: bool = False
    close_already_running_automation: bool = False
    use_automation_runs: bool = False
    timeout: float = 30.0
    verify_tls: bool = True
