from rig_splitter.cli import run

if __name__ == "__main__":  # pragma: no cover - module entrypoint
    run()
