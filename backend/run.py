from darksignal import create_app, db, socketio

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        import darksignal.models  # noqa: F401
        db.create_all()
    app.logger.info(f">> SERVER RUNNING ON PORT {app.config['PORT']}")
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, port=app.config['PORT'], debug=True)
