"""systemlink-cli -- a command-line client synthesized from Swagger 2.0 models.

Every Swagger document placed in the ``models`` directory becomes a command
group, and every operation in it a sub-command whose flags mirror the
operation's parameters. Arguments are converted to the declared parameter
types, routed into path/query/header/body/form-data locations, and sent to
the service, optionally through an HTTP proxy tunnelled over SSH.

Typical usage::

    systemlink messages create-session --url https://my-server
    systemlink tags get-tags --api-key "$NI_API_KEY" --take 10

Modules:
    app: Typer application and console-script entry point.
    models: Pydantic models shared across the package.
    config: ``systemlink.yaml`` profile loading and settings resolution.
    converter: Conversion of raw argument strings to typed values.
    parser: Swagger 2.0 model compiler.
    generator: Typer command generation.
    client: Request building and the retrying HTTP caller.
    ssh: HTTP proxy tunnelled over SSH.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes per error category.
    output: stdout responses, Rich diagnostics and log routing on stderr.
"""

__version__ = "0.1.0"
