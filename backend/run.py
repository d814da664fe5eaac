import click

from whostune import create_app, socketio

app = create_app()


@click.command()
@click.option('--host', default='0.0.0.0', show_default=True)
@click.option('--port', default=3000, show_default=True, type=int)
@click.option('--debug/--no-debug', default=False)
def serve(host, port, debug):
    """Run the game server with Socket.IO support."""
    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    serve()
