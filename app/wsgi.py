from app.cdms import create_app

app = create_app()
