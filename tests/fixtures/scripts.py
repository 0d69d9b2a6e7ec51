"""Script sources shared by the test suite.

Each constant is a complete script exercising one feature of the state
model. Expected node counts are noted next to each script so that tests
can pin them.
"""

from __future__ import annotations

# 3 nodes: index|has_key=false, index|has_key=true, victory|has_key=true
DOOR_AND_KEY = """\
// title: The Locked Door
// STATES: has_key

=== index ===
- {has_key == false} The door is locked.
- {has_key == true} The key fits the lock.
* {has_key == false} Search the floor. ~ has_key = true
* {has_key == true} Open the door. -> victory

=== victory ===
You are free.
END
"""

# The flag can never be cleared, so "Forget" is a no-op on the state.
# 3 nodes: index|met=false, index|met=true, end|met=true
FLAG_IRREVERSIBLE = """\
// FLAG-STATES: met

=== index ===
Hello.
* {met == false} Meet the guard. ~ met = true
* {met == true} Forget the guard. ~ met = false
* {met == true} Leave. -> end

=== end ===
Bye.
END
"""

# Opening the drawer is forgotten on entering the hall.
# 3 nodes: room|drawer=false, room|drawer=true, hall|drawer=false
LOCAL_PURGE = """\
// LOCAL-STATES: drawer

=== room ===
// scene: bedroom
Your room.
* {drawer == false} Open the drawer. ~ drawer = true
* Go to the hall. -> hall

=== hall ===
// scene: corridor
A long hall.
END
"""

# "secret" is never reachable because nothing ever sets the flag.
# 2 nodes: index|gem=false, ending|gem=false
UNREACHABLE_KNOT = """\
// STATES: gem

=== index ===
Start here.
* Walk on. -> ending
* {gem == true} Use the gem. -> secret

=== secret ===
Nobody comes here.
END

=== ending ===
The end.
END
"""

# A bare anchor jump is dropped; one carrying a state change stays in the knot.
STITCHES = """\
// STATES: searched

=== index ===
A dusty study.
* Look around. -> .search
* {searched == false} Search the desk. ~ searched = true -> .desk
* Leave. -> outside

=== outside ===
Fresh air.
END
"""

MISSING_ENTRY = """\
=== start ===
No index here.
END
"""

UNKNOWN_TARGET = """\
=== index ===
Somewhere.
* Go on. -> nowehre

=== nowhere ===
END
"""
