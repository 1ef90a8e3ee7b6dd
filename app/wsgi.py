from app.aprameya import create_app

app = create_app()
