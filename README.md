# travelsplit

travelsplit is a chat bot that keeps the accounts of a group trip. You add
travelers to a chat. Each expense records who paid and how the cost is
split. Money passed directly between travelers is recorded as a transfer.
From all of this the bot works out who owes what to whom. Data is kept in
SQLite, either in memory or in a database file.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Running the bot

The package installs a `travelsplit` command. It reads messages from
standard input, one per line, and prints the bot's replies. Blank lines are
skipped.

```
travelsplit [--database PATH] [--chat-id N] [--bot-name NAME]
```

- `--database`: a SQLite database file, or `memory` (the default) for an
  in-memory store. A `file://` prefix is accepted.
- `--chat-id`: the chat that the messages belong to (default `0`).
- `--bot-name`: the bot's username. A command written as `/help@NAME` is
  then accepted as `/help`.

## Commands

| Command | What it does |
| --- | --- |
| `/help [command]` | Lists all commands, or explains one command |
| `/setlanguage <langid>` | Changes the chat language (`en-US` or `it-IT`) |
| `/setcurrency <code>` | Changes the chat currency, for example `EUR` |
| `/addtraveler <name>` | Adds a traveler |
| `/deletetraveler <name>` | Removes a traveler who has paid for no expenses |
| `/listtravelers` | Lists the travelers |
| `/addexpense` | Starts a guided dialogue to record an expense |
| `/deleteexpense <number>` | Deletes an expense |
| `/listexpenses [text]` | Lists expenses, optionally only those whose description contains the text |
| `/showexpense <number>` | Shows how an expense was split |
| `/transfer <from> <to> <amount>` | Records money given by one traveler to another |
| `/deletetransfer <number>` | Deletes a transfer |
| `/listtransfers [name]` | Lists transfers, optionally only those of one traveler |
| `/showbalances [name]` | Shows who owes whom, optionally for one traveler |
| `/cancel` | Cancels the dialogue in progress |

Command names are matched case-insensitively. If a command name is
misspelt, the bot suggests the closest known command. If a known command has
bad arguments, the bot replies with that command's help.

Traveler names cannot contain `;`, `:` or `,`, and cannot be `all` or `end`.

Amounts are shown rounded to the currency's minor unit. Known currencies
(EUR, USD, GBP, CHF, JPY, BTC, ETH) are shown with their symbol. Other
currencies are shown with their code. A balance that rounds to zero counts
as settled.

The Italian catalog does not cover every message. Messages it lacks are
given in English.

## Splitting an expense

After `/addexpense` the bot asks, in order, for:

1. a description;
2. an amount, which must be positive;
3. who paid, which must be a traveler;
4. how the expense is split.

For the split, send entries separated by `;`. An entry can be:

- a name alone, such as `Charlie`;
- a name with an amount, such as `Alice: 40`;
- a name with a percentage of the expense, such as `Bob: 40%`.

Within one message, the amount that is still unassigned is divided evenly
among the travelers named without an amount. You can send entries over
several messages. To finish, reply in one of two ways:

- `all` divides what is still unassigned evenly among the travelers who have
  no share yet. If every traveler already has a share, it is divided among
  all of them.
- `end` finishes the split. It is accepted only when the shares cover the
  whole amount.

Example split: `Alice: 40; Bob: 40%; Charlie; David`.

## Using it from Python

```python
from travelsplit.store import connect
from travelsplit.bot import TravelBot

bot = TravelBot(connect("memory"), "travelsplit_bot")
chat_id = 42
print(bot.handle(chat_id, "/addtraveler Alice"))
print(bot.handle(chat_id, "/addtraveler Bob"))
print(bot.handle(chat_id, "/transfer Alice Bob 25.50"))
print(bot.handle(chat_id, "/showbalances"))
```

`TravelBot.handle` returns the reply as a string. It returns `None` for a
message that needs no reply. One bot and one `Store` can serve any number of
chats.

Each kind of command also has a plain function that takes a `Store`:

- `travelsplit.travelers`: `add_traveler`, `delete_traveler`, `list_travelers`
- `travelsplit.expenses`: `delete_expense`, `list_expenses`, `show_expense`
- `travelsplit.transfers`: `transfer`, `delete_transfer`, `list_transfers`
- `travelsplit.balances`: `show_balances`

These functions raise `travelsplit.messages.CommandError` when a command
fails. `travelsplit.command.parse_command` turns message text into a
`Command`.

## What it does not do

travelsplit has no client for any chat service. It talks only through
`TravelBot.handle` and the `travelsplit` command, which reads standard input.
The dialogue in progress for `/addexpense` is kept in memory, not in the
store, so it is lost when the process ends.