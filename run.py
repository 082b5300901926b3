from proppool import create_app, db
from proppool.models import CaptainAction, Pick, Player, Pool, Prop

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "Pool": Pool,
        "Prop": Prop,
        "Player": Player,
        "Pick": Pick,
        "CaptainAction": CaptainAction,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
