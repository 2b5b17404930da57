from .cli import extension_path_main

if __name__ == "__main__":
    extension_path_main()
