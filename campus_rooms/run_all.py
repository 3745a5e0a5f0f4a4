import os, subprocess, sys, time
from pathlib import Path

ROOT = Path(__file__).parent


def ensure_csvs():
    print('Regenerating rooms CSV (UB, TP, TP2)...')
    subprocess.check_call([sys.executable, 'scripts/generate_sample_data.py', '--seed', '42'], cwd=ROOT)


def populate_db():
    print('Loading room catalog into DB...')
    subprocess.check_call([sys.executable, '-c', 'import roombook.init_db as i; i.populate_from_csv()'], cwd=ROOT)


def start_backend(in_process_sweep=True):
    print('Starting backend (uvicorn) on port 8000...')
    env = dict(os.environ, AUTO_RELEASE_ENABLED='true' if in_process_sweep else 'false')
    return subprocess.Popen([sys.executable, '-m', 'uvicorn', 'roombook.main:app', '--host', '0.0.0.0', '--port', '8000'], cwd=ROOT, env=env)


def start_sweeper():
    print('Starting external auto-release trigger...')
    return subprocess.Popen([sys.executable, 'ops/auto_release_runner.py', '--every', '300'], cwd=ROOT)


def main(external_sweeper=False):
    ensure_csvs()
    populate_db()
    procs = []
    try:
        procs.append(start_backend(in_process_sweep=not external_sweeper))
        if external_sweeper:
            procs.append(start_sweeper())
        print('Open http://localhost:8000/docs for the API.')
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print('Stopping services...')
        for p in procs:
            p.terminate()


if __name__ == '__main__':
    main(external_sweeper='--external-sweeper' in sys.argv)
