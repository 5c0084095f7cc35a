from phasebranch.cli.app import app

app()
