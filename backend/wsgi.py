from cubbyshop import create_app

app = create_app()
