from colorama import Fore, Style


def h1(msg):
    print(
        f"\n\n{Fore.CYAN}-------------------------------------------------------------------------")
    print(f"{Fore.CYAN}{msg}{Style.RESET_ALL}\n")


def h2(msg):
    print(f"\n{Fore.LIGHTBLUE_EX}▸ {msg}{Style.RESET_ALL}\n")


def h3(msg):
    print(f"\t{Fore.GREEN}{msg}{Style.RESET_ALL}")


def skip(msg):
    # a step left out of the batch because its effect is already in place
    print(f"\t{Fore.YELLOW}↷ {msg}, skipping{Style.RESET_ALL}")


def action(position, batch_action, output=None):
    line = f"\t{Fore.GREEN}#{position}{Style.RESET_ALL} {batch_action.to} {Fore.LIGHTBLACK_EX}{batch_action.selector}{Style.RESET_ALL}"
    if output is not None:
        line += f" -> 0x{output.hex()}"
    print(line)


def error(msg):
    print(f"{Fore.RED}{msg}{Style.RESET_ALL}")


def info(msg):
    print(msg)


def summary(title, rows):
    # rows is a list of (label, value) pairs
    print(f"\n{Fore.CYAN}{title}:{Style.RESET_ALL}")
    width = max((len(label) for label, _ in rows), default=0)
    for label, value in rows:
        print(f"  {label.ljust(width)}  {value}")
