from fabvote.cli import cli

cli()
