from loggregate.cli import cli

cli(prog_name="loggregate")
