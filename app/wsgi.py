from app.teamforms import create_app

app = create_app()
