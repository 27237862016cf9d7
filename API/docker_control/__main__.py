from docker_control.main import run

if __name__ == "__main__":
    run()
