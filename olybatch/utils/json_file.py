import json
import os


def load(filename):
    # loads the json content of a file
    # (error will be raised if file doesn't exist)

    with open(filename) as file:
        return json.load(file)


def save(filename, content, indent=2, sort_keys=False):
    # saves the json content to a file, keeping a trailing newline

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filename, "w") as outfile:
        json.dump(content, outfile, indent=indent, sort_keys=sort_keys)
        outfile.write("\n")

    return filename
