from tokenprism.cli.main import app

app()
